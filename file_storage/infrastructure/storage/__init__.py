"""Storage: named adapters over pluggable backend drivers.

StorageAdapterFactory maps configured aliases to factories; AdapterRegistry
builds each driver lazily on first resolve so that:
- Default (local) only requires aiofiles (main dependency).
- S3 only loads boto3 when used; install with: pip install "file-storage[s3]".
- SFTP only loads paramiko when used; install with: pip install "file-storage[sftp]".

Drivers implement StorageDriver (write, read, has, delete).
"""

from file_storage.infrastructure.storage.adapter_factory import StorageAdapterFactory
from file_storage.infrastructure.storage.protocol import StorageDriver
from file_storage.infrastructure.storage.registry import AdapterRegistry, AdapterState

__all__ = [
    "AdapterRegistry",
    "AdapterState",
    "StorageAdapterFactory",
    "StorageDriver",
]
