"""Domain exceptions for the file storage core.

Defines errors for file descriptions, variant definitions, path templates
and variant processing. Infrastructure errors (adapters, drivers) extend the
same base in file_storage.infrastructure.exceptions so callers can catch
FileStorageException for everything raised by this package.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from file_storage.domain.file import File


class FileStorageException(Exception):
    """Base exception for all file storage errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. file_id, variant, path).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(FileStorageException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class InvalidFilenameError(ValidationException):
    """Raised when a filename is empty or invalid after sanitization."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            f"Filename is empty or invalid after sanitization: {filename!r}",
            field="filename",
        )
        self.error_code = "INVALID_FILENAME"
        self.details["filename"] = filename


class InvalidTemplateError(FileStorageException):
    """Raised when a path template contains an unknown token."""

    def __init__(self, template: str, token: str) -> None:
        super().__init__(
            f"Unknown token '{{{token}}}' in path template: {template}",
            "INVALID_TEMPLATE",
            {"template": template, "token": token},
        )


class VariantNotFoundError(FileStorageException):
    """Raised when a variant was never declared on (or produced for) a file."""

    def __init__(self, name: str, file_id: str | None = None) -> None:
        details: dict[str, Any] = {"variant": name}
        if file_id:
            details["file_id"] = file_id
        super().__init__(
            f"Variant `{name}` does not exist",
            "VARIANT_NOT_FOUND",
            details,
        )


class VariantExistsError(FileStorageException):
    """Raised when adding a variant whose name is already in the collection."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"A variant with the name `{name}` already exists",
            "VARIANT_EXISTS",
            {"variant": name},
        )


class FileDoesNotExistError(FileStorageException):
    """Raised when a local file to ingest does not exist."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            f"File `{filename}` does not exist",
            "FILE_DOES_NOT_EXIST",
            {"filename": filename},
        )


class FileNotReadableError(FileStorageException):
    """Raised when a local file to ingest exists but cannot be read."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            f"File `{filename}` is not readable",
            "FILE_NOT_READABLE",
            {"filename": filename},
        )


class UploadError(FileStorageException):
    """Raised when a pending upload carries an error code."""

    def __init__(self, error_code: int, client_filename: str | None = None) -> None:
        super().__init__(
            f"Can't create storage object from upload with error code: {error_code}",
            "UPLOAD_ERROR",
            {"upload_error_code": error_code, "client_filename": client_filename},
        )


class ProcessingError(FileStorageException):
    """Base exception for variant processing failures."""


class TempFileCreationError(ProcessingError):
    """Raised when the scratch copy of the original could not be created."""

    def __init__(self, filename: str, file_id: str | None = None, reason: str = "") -> None:
        super().__init__(
            f"Failed to create temporary file `{filename}`",
            "TEMP_FILE_CREATION_FAILED",
            {"filename": filename, "file_id": file_id, "reason": reason},
        )


class ImageDecodeError(ProcessingError):
    """Raised when the original cannot be decoded as an image."""

    def __init__(self, filename: str, file_id: str | None = None, reason: str = "") -> None:
        super().__init__(
            f"Cannot decode image `{filename}`",
            "IMAGE_DECODE_FAILED",
            {"filename": filename, "file_id": file_id, "reason": reason},
        )


class UnsupportedOperationError(ProcessingError):
    """Raised for an operation name that has no registered implementation."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Operation `{operation}` is not implemented or supported",
            "UNSUPPORTED_OPERATION",
            {"operation": operation},
        )


class InvalidOperationArgumentError(ProcessingError):
    """Raised when an operation is called with missing or invalid arguments."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Invalid arguments for operation `{operation}`: {reason}",
            "INVALID_OPERATION_ARGUMENT",
            {"operation": operation, "reason": reason},
        )


class VariantProcessingError(ProcessingError):
    """Raised when producing one variant of a file fails.

    Carries the file as it was when the failure happened: variants completed
    earlier in the same pass keep their path/url, the failing variant is
    marked failed, so a retry can be scoped to the remaining variants.
    """

    def __init__(self, file: File, variant: str, reason: str) -> None:
        super().__init__(
            f"Failed to process variant `{variant}` of file {file.uuid}: {reason}",
            "VARIANT_PROCESSING_FAILED",
            {"file_id": file.uuid, "variant": variant, "reason": reason},
        )
        self.file = file
        self.variant = variant
