"""Named, lazily built storage adapters.

Each name moves through UNREGISTERED -> CONFIGURED -> BUILT. The first
resolve() of a configured name builds the driver under a per-name lock so
concurrent first resolutions construct exactly one instance; afterwards the
cached driver is returned without locking.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from file_storage.infrastructure.exceptions import AdapterExistsError, AdapterNotFoundError
from file_storage.infrastructure.storage.factories import AbstractFactory
from file_storage.infrastructure.storage.protocol import StorageDriver
from file_storage.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class AdapterState(str, Enum):
    UNREGISTERED = "unregistered"
    CONFIGURED = "configured"
    BUILT = "built"


@dataclass
class _Entry:
    factory: AbstractFactory | None
    config: dict[str, Any] = field(default_factory=dict)
    driver: StorageDriver | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)


class AdapterRegistry:
    """Thread-safe registry of storage drivers by logical name."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        factory: AbstractFactory,
        config: dict[str, Any] | None = None,
    ) -> None:
        """Bind name to a factory and its config; the driver is built on first resolve.

        Re-registering a configured name replaces its configuration.

        Raises:
            AdapterExistsError: If a driver is already built under name.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None and entry.driver is not None:
                raise AdapterExistsError(name)
            self._entries[name] = _Entry(factory=factory, config=dict(config or {}))
        logger.debug("Registered adapter %s (%s)", name, factory.alias or type(factory).__name__)

    def add(self, name: str, driver: StorageDriver) -> None:
        """Register an already built driver.

        Raises:
            AdapterExistsError: If a driver is already built under name.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None and entry.driver is not None:
                raise AdapterExistsError(name)
            self._entries[name] = _Entry(factory=None, driver=driver)
        logger.debug("Added adapter %s (%s)", name, type(driver).__name__)

    def resolve(self, name: str) -> StorageDriver:
        """Return the driver for name, building it on first use.

        Raises:
            AdapterNotFoundError: Name was never registered.
            MissingDependencyError: Backend library not installed.
            FactoryConfigError: Invalid adapter configuration.
        """
        entry = self._entries.get(name)
        if entry is None:
            raise AdapterNotFoundError(name)
        driver = entry.driver
        if driver is not None:
            return driver
        with entry.lock:
            if entry.driver is None:
                if entry.factory is None:
                    raise AdapterNotFoundError(name)
                entry.driver = entry.factory.build(entry.config)
                logger.info(
                    "Built adapter %s with %s", name, type(entry.driver).__name__
                )
            return entry.driver

    def has(self, name: str) -> bool:
        return name in self._entries

    def is_built(self, name: str) -> bool:
        entry = self._entries.get(name)
        return entry is not None and entry.driver is not None

    def state(self, name: str) -> AdapterState:
        entry = self._entries.get(name)
        if entry is None:
            return AdapterState.UNREGISTERED
        if entry.driver is None:
            return AdapterState.CONFIGURED
        return AdapterState.BUILT

    def remove(self, name: str) -> None:
        with self._lock:
            self._entries.pop(name, None)

    def names(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
