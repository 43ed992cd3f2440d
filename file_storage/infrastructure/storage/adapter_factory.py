"""Adapter factory lookup: resolves configured aliases to factory instances."""

from typing import ClassVar

from file_storage.infrastructure.exceptions import FactoryNotFoundError
from file_storage.infrastructure.storage.factories import (
    AbstractFactory,
    AwsS3Factory,
    FtpFactory,
    LocalFactory,
    MemoryFactory,
    NullFactory,
    ReplicateFactory,
    SftpFactory,
    WebDAVFactory,
    ZipArchiveFactory,
)
from file_storage.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class StorageAdapterFactory:
    """Factory lookup by alias (case-insensitive), class, or instance."""

    DEFAULT_FACTORIES: ClassVar[dict[str, type[AbstractFactory]]] = {
        "local": LocalFactory,
        "memory": MemoryFactory,
        "null": NullFactory,
        "s3": AwsS3Factory,
        "awss3": AwsS3Factory,
        "ftp": FtpFactory,
        "sftp": SftpFactory,
        "webdav": WebDAVFactory,
        "replicate": ReplicateFactory,
        "zip": ZipArchiveFactory,
        "ziparchive": ZipArchiveFactory,
    }

    def __init__(self) -> None:
        self._factories: dict[str, type[AbstractFactory]] = dict(self.DEFAULT_FACTORIES)

    def get(self, factory: str | type[AbstractFactory] | AbstractFactory) -> AbstractFactory:
        """Return a factory instance.

        Args:
            factory: Alias such as "Local" or "s3", a factory class, or an instance.

        Raises:
            FactoryNotFoundError: Unknown alias or not a factory.
        """
        if isinstance(factory, AbstractFactory):
            return factory
        if isinstance(factory, type) and issubclass(factory, AbstractFactory):
            return factory()
        if isinstance(factory, str):
            factory_class = self._factories.get(factory.lower())
            if factory_class is not None:
                return factory_class()
        raise FactoryNotFoundError(str(factory))

    def register_factory(self, alias: str, factory_class: type[AbstractFactory]) -> None:
        """Register a custom factory alias."""
        if not (isinstance(factory_class, type) and issubclass(factory_class, AbstractFactory)):
            raise FactoryNotFoundError(str(factory_class))
        self._factories[alias.lower()] = factory_class
        logger.info("Registered custom adapter factory: %s", alias)

    def aliases(self) -> list[str]:
        return sorted(self._factories)
