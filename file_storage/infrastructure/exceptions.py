"""Infrastructure exceptions for adapters, factories and storage drivers.

Storage errors extend FileStorageException so callers can handle every error
raised by this package through one base class.
"""

from file_storage.domain.exceptions import FileStorageException, InvalidTemplateError


class StorageException(FileStorageException):
    """Base exception for storage operations."""


class StorageWriteError(StorageException):
    """Writing bytes through an adapter failed."""

    def __init__(self, adapter: str, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to store resource in `{adapter}` with path `{path}`",
            "STORAGE_WRITE_ERROR",
            {"adapter": adapter, "path": path, "reason": reason},
        )


class StorageReadError(StorageException):
    """Reading bytes through an adapter failed (original unreachable)."""

    def __init__(self, adapter: str, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to read `{path}` from `{adapter}`",
            "STORAGE_READ_ERROR",
            {"adapter": adapter, "path": path, "reason": reason},
        )


class StorageDeleteError(StorageException):
    """Deleting a path through an adapter failed."""

    def __init__(self, adapter: str, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete `{path}` from `{adapter}`",
            "STORAGE_DELETE_ERROR",
            {"adapter": adapter, "path": path, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Path escapes the driver root or the operation is not permitted."""

    def __init__(self, path: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {path}",
            "STORAGE_PERMISSION_ERROR",
            {"path": path, "operation": operation},
        )


class AdapterNotFoundError(StorageException):
    """No adapter is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No adapter registered with the name `{name}`",
            "ADAPTER_NOT_FOUND",
            {"adapter": name},
        )


class AdapterExistsError(StorageException):
    """An adapter with that name is already built in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"An adapter with the name `{name}` already exists",
            "ADAPTER_EXISTS",
            {"adapter": name},
        )


class FactoryNotFoundError(StorageException):
    """No factory is known for the configured alias or class."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No adapter factory found for `{name}`",
            "FACTORY_NOT_FOUND",
            {"factory": name},
        )


class FactoryConfigError(StorageException):
    """A factory was given an incomplete or invalid configuration."""

    def __init__(self, factory: str, reason: str) -> None:
        super().__init__(
            f"Invalid configuration for `{factory}`: {reason}",
            "FACTORY_CONFIG_ERROR",
            {"factory": factory, "reason": reason},
        )


class MissingDependencyError(StorageException):
    """The optional library a backend needs is not installed."""

    def __init__(self, adapter: str, package: str) -> None:
        super().__init__(
            f"Adapter `{adapter}` requires the `{package}` package. "
            f"Install it with: pip install {package}",
            "MISSING_DEPENDENCY",
            {"adapter": adapter, "package": package},
        )


# Deployment defects: never reported per file, always raised.
CONFIGURATION_ERRORS: tuple[type[FileStorageException], ...] = (
    AdapterNotFoundError,
    FactoryConfigError,
    FactoryNotFoundError,
    InvalidTemplateError,
    MissingDependencyError,
)
