"""Storage driver protocol (DIP).

Implementations live in file_storage.infrastructure.storage.drivers. Drivers
report failure either by returning False or by raising; StorageService turns
both into typed storage errors.
"""

from typing import Any, Protocol


class StorageDriver(Protocol):
    """Protocol for byte storage backends (local disk, S3, FTP, ...)."""

    async def write(self, path: str, contents: bytes) -> dict[str, Any] | bool:
        """Write contents to path, replacing any existing object.

        Returns a result dict (at least "path" and "size") or False.
        """
        ...

    async def read(self, path: str) -> bytes | bool:
        """Return the stored bytes, or False when they cannot be read."""
        ...

    async def has(self, path: str) -> bool:
        """Return True if an object exists at path."""
        ...

    async def delete(self, path: str) -> bool:
        """Delete path. Returns True if deleted, False if not found."""
        ...
