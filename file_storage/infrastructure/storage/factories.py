"""Adapter factories: one per backend family.

A factory validates its own configuration and the presence of the optional
library its driver needs, then builds the driver. Driver modules are imported
inside build(), so a backend whose library is missing only fails when it is
first resolved, never at import time.
"""

from __future__ import annotations

import importlib.util
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, ClassVar

from file_storage.infrastructure.exceptions import FactoryConfigError, MissingDependencyError
from file_storage.infrastructure.storage.protocol import StorageDriver


class AbstractFactory(ABC):
    """Base adapter factory.

    Attributes:
        alias: Human readable backend name, used in errors and logs.
        package: Distribution to install when the backend is unavailable.
        module: Import name checked by the default availability predicate;
            None means the backend needs nothing beyond this package.
        defaults: Options merged under the configured ones.
        required: Options that must be present and non-empty.
    """

    alias: ClassVar[str] = ""
    package: ClassVar[str | None] = None
    module: ClassVar[str | None] = None
    defaults: ClassVar[Mapping[str, Any]] = {}
    required: ClassVar[tuple[str, ...]] = ()

    def __init__(self, availability: Callable[[], bool] | None = None) -> None:
        """Initialize factory.

        Args:
            availability: Predicate replacing the default import check.
        """
        self._availability = availability

    def is_available(self) -> bool:
        if self._availability is not None:
            return self._availability()
        if self.module is None:
            return True
        return importlib.util.find_spec(self.module) is not None

    def availability_check(self) -> None:
        """Raise MissingDependencyError naming the package if the backend cannot load."""
        if not self.is_available():
            raise MissingDependencyError(self.alias, self.package or self.module or self.alias)

    def build(self, config: Mapping[str, Any] | None = None) -> StorageDriver:
        """Merge defaults, validate required options and build the driver.

        Raises:
            MissingDependencyError: Backend library not installed.
            FactoryConfigError: Required option missing or unknown option given.
        """
        self.availability_check()
        options = {**self.defaults, **(config or {})}
        missing = [key for key in self.required if options.get(key) in (None, "")]
        if missing:
            raise FactoryConfigError(self.alias, f"missing required option(s): {', '.join(missing)}")
        try:
            return self.create(options)
        except TypeError as e:
            raise FactoryConfigError(self.alias, str(e)) from e

    @abstractmethod
    def create(self, options: dict[str, Any]) -> StorageDriver:
        """Instantiate the driver from validated options."""


class LocalFactory(AbstractFactory):
    alias = "Local"
    package = "aiofiles"
    module = "aiofiles"
    required = ("root",)

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.local import LocalStorageDriver

        return LocalStorageDriver(**options)


class MemoryFactory(AbstractFactory):
    alias = "Memory"

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.memory import MemoryStorageDriver

        return MemoryStorageDriver(**options)


class NullFactory(AbstractFactory):
    alias = "Null"

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.memory import NullStorageDriver

        if options:
            raise FactoryConfigError(self.alias, "takes no options")
        return NullStorageDriver()


class AwsS3Factory(AbstractFactory):
    alias = "AwsS3"
    package = "boto3"
    module = "boto3"
    defaults = {"region": "us-east-1"}
    required = ("bucket",)

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.s3 import S3StorageDriver

        return S3StorageDriver(**options)


class FtpFactory(AbstractFactory):
    alias = "Ftp"
    defaults = {"port": 21, "root": "/", "passive": True, "ssl": False}
    required = ("host",)

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.ftp import FtpStorageDriver

        return FtpStorageDriver(**options)


class SftpFactory(AbstractFactory):
    alias = "Sftp"
    package = "paramiko"
    module = "paramiko"
    defaults = {"port": 22, "root": "/"}
    required = ("host", "username")

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.sftp import SftpStorageDriver

        return SftpStorageDriver(**options)


class WebDAVFactory(AbstractFactory):
    alias = "WebDAV"
    package = "httpx"
    module = "httpx"
    required = ("base_url",)

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.webdav import WebDAVStorageDriver

        return WebDAVStorageDriver(**options)


class ReplicateFactory(AbstractFactory):
    """Mirror two already built drivers (options "source" and "target")."""

    alias = "Replicate"
    required = ("source", "target")

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.replicate import ReplicateStorageDriver

        for key in ("source", "target"):
            if isinstance(options[key], (str, Mapping)):
                raise FactoryConfigError(self.alias, f"`{key}` must be a built driver")
        return ReplicateStorageDriver(options["source"], options["target"])


class ZipArchiveFactory(AbstractFactory):
    alias = "ZipArchive"
    required = ("location",)

    def create(self, options: dict[str, Any]) -> StorageDriver:
        from file_storage.infrastructure.storage.drivers.zip_archive import (
            ZipArchiveStorageDriver,
        )

        return ZipArchiveStorageDriver(**options)
