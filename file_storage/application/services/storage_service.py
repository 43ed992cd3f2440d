"""Storage facade over named adapters.

Drivers signal failure heterogeneously (returning False, raising their own
exceptions); StorageService normalizes every failure into StorageWriteError,
StorageReadError or StorageDeleteError carrying the adapter name and path.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any, BinaryIO

from file_storage.infrastructure.exceptions import (
    FactoryConfigError,
    StorageDeleteError,
    StorageException,
    StorageReadError,
    StorageWriteError,
)
from file_storage.infrastructure.storage.adapter_factory import StorageAdapterFactory
from file_storage.infrastructure.storage.factories import AbstractFactory
from file_storage.infrastructure.storage.protocol import StorageDriver
from file_storage.infrastructure.storage.registry import AdapterRegistry
from file_storage.shared.telemetry.logging import get_logger
from file_storage.shared.telemetry.tracing import traced

logger = get_logger(__name__)


def _rewind_if_seekable(data: BinaryIO) -> None:
    """Reset stream position to start if stream is seekable."""
    if getattr(data, "seekable", lambda: False)():
        data.seek(0)


class StorageService:
    """Read, write and delete bytes through adapters registered by name."""

    def __init__(
        self,
        registry: AdapterRegistry | None = None,
        adapter_factory: StorageAdapterFactory | None = None,
    ) -> None:
        self.registry = registry or AdapterRegistry()
        self.adapter_factory = adapter_factory or StorageAdapterFactory()

    @classmethod
    def from_settings(cls, settings: Any = None) -> StorageService:
        """Create a service with every adapter from settings registered (not built)."""
        from file_storage.core.config import get_settings

        s = settings or get_settings()
        service = cls()
        service.set_adapter_config_from_dict(s.adapter_config())
        return service

    @property
    def adapters(self) -> list[str]:
        return self.registry.names()

    def add_adapter_config(
        self,
        name: str,
        factory: str | type[AbstractFactory] | AbstractFactory,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Register an adapter; the driver is built on first use."""
        self.registry.register(name, self.adapter_factory.get(factory), dict(options or {}))

    def set_adapter_config_from_dict(self, config: Mapping[str, Mapping[str, Any]]) -> None:
        """Register adapters from {name: {"class": alias, "options": {...}}}.

        Raises:
            FactoryConfigError: Entry without "class" or with non-dict options.
            FactoryNotFoundError: Unknown factory alias.
        """
        for name, entry in config.items():
            if not isinstance(entry, Mapping) or not entry.get("class"):
                raise FactoryConfigError(name, "`class` is missing")
            options = entry.get("options", {})
            if not isinstance(options, Mapping):
                raise FactoryConfigError(name, "`options` must be a mapping")
            self.add_adapter_config(name, entry["class"], options)

    def get_adapter(self, adapter: str) -> StorageDriver:
        return self.registry.resolve(adapter)

    @traced("storage.store")
    async def store(
        self, adapter: str, path: str, data: bytes | BinaryIO
    ) -> dict[str, Any]:
        """Write bytes or a binary stream to path.

        Raises:
            StorageWriteError: Driver returned False or raised.
        """
        if isinstance(data, (bytes, bytearray)):
            contents = bytes(data)
        else:
            _rewind_if_seekable(data)
            contents = await asyncio.to_thread(data.read)
        driver = self.get_adapter(adapter)
        try:
            result = await driver.write(path, contents)
        except StorageException:
            raise
        except Exception as e:
            raise StorageWriteError(adapter, path, str(e)) from e
        if result is False:
            raise StorageWriteError(adapter, path, "driver reported failure")
        logger.debug("Stored %s bytes at %s:%s", len(contents), adapter, path)
        if isinstance(result, dict):
            return result
        return {"path": path, "size": len(contents)}

    async def store_file(self, adapter: str, path: str, local_path: str | Path) -> dict[str, Any]:
        """Write the contents of a local file to path."""
        with open(local_path, "rb") as f:
            return await self.store(adapter, path, f)

    @traced("storage.read")
    async def read(self, adapter: str, path: str) -> bytes:
        """Return stored bytes.

        Raises:
            StorageReadError: Object missing or driver failure.
        """
        driver = self.get_adapter(adapter)
        try:
            contents = await driver.read(path)
        except StorageException:
            raise
        except Exception as e:
            raise StorageReadError(adapter, path, str(e)) from e
        if contents is False or contents is True:
            raise StorageReadError(adapter, path, "driver reported failure")
        return contents

    async def exists(self, adapter: str, path: str) -> bool:
        return bool(await self.get_adapter(adapter).has(path))

    @traced("storage.remove")
    async def remove(self, adapter: str, path: str) -> bool:
        """Delete path. Returns False when nothing was stored there.

        Raises:
            StorageDeleteError: Driver failure.
        """
        driver = self.get_adapter(adapter)
        try:
            if not await driver.has(path):
                return False
            deleted = await driver.delete(path)
        except StorageException:
            raise
        except Exception as e:
            raise StorageDeleteError(adapter, path, str(e)) from e
        if deleted:
            logger.debug("Removed %s:%s", adapter, path)
        return bool(deleted)
