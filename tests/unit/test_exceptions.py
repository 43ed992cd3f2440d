"""Tests for domain and infrastructure exceptions (error_code, message, details)."""

from file_storage.domain.exceptions import (
    FileStorageException,
    InvalidFilenameError,
    InvalidTemplateError,
    TempFileCreationError,
    UnsupportedOperationError,
    ValidationException,
    VariantNotFoundError,
    VariantProcessingError,
)
from file_storage.domain.file import File
from file_storage.infrastructure.exceptions import (
    AdapterNotFoundError,
    MissingDependencyError,
    StorageException,
    StorageWriteError,
)


def test_base_exception_default_error_code() -> None:
    """FileStorageException uses class name as error_code when not provided."""
    exc = FileStorageException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "FileStorageException"
    assert exc.details == {}


def test_base_exception_custom_error_code_and_details() -> None:
    exc = FileStorageException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.error_code == "CUSTOM"
    assert exc.details == {"key": "value"}
    assert str(exc) == "Oops"


def test_validation_exception() -> None:
    exc = ValidationException("Invalid format", field="direction")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "direction"}


def test_validation_exception_without_field() -> None:
    exc = ValidationException("Bad input")
    assert exc.details == {}


def test_invalid_filename_is_validation_error() -> None:
    exc = InvalidFilenameError("???")
    assert isinstance(exc, ValidationException)
    assert exc.error_code == "INVALID_FILENAME"
    assert exc.details["filename"] == "???"


def test_invalid_template_names_token() -> None:
    exc = InvalidTemplateError("{model}/{nope}", "nope")
    assert exc.error_code == "INVALID_TEMPLATE"
    assert exc.details["token"] == "nope"
    assert "{nope}" in exc.message


def test_variant_not_found_details() -> None:
    exc = VariantNotFoundError("thumb", "abc")
    assert exc.error_code == "VARIANT_NOT_FOUND"
    assert exc.details == {"variant": "thumb", "file_id": "abc"}


def test_unsupported_operation_names_operation() -> None:
    exc = UnsupportedOperationError("blur")
    assert exc.error_code == "UNSUPPORTED_OPERATION"
    assert exc.details["operation"] == "blur"
    assert "blur" in exc.message


def test_temp_file_creation_error() -> None:
    exc = TempFileCreationError("cake.png", "abc", "disk full")
    assert exc.details == {"filename": "cake.png", "file_id": "abc", "reason": "disk full"}


def test_variant_processing_error_carries_partial_file() -> None:
    file = File.create("cake.png", 10, "image/png", "Local")
    exc = VariantProcessingError(file, "thumb", "boom")
    assert exc.file is file
    assert exc.variant == "thumb"
    assert exc.details["file_id"] == file.uuid


def test_storage_errors_share_base() -> None:
    exc = StorageWriteError("Local", "a/b.png", "disk full")
    assert isinstance(exc, StorageException)
    assert isinstance(exc, FileStorageException)
    assert exc.error_code == "STORAGE_WRITE_ERROR"
    assert exc.details == {"adapter": "Local", "path": "a/b.png", "reason": "disk full"}


def test_adapter_not_found() -> None:
    exc = AdapterNotFoundError("S3")
    assert exc.error_code == "ADAPTER_NOT_FOUND"
    assert exc.details == {"adapter": "S3"}


def test_missing_dependency_names_package() -> None:
    exc = MissingDependencyError("AwsS3", "boto3")
    assert exc.error_code == "MISSING_DEPENDENCY"
    assert "boto3" in exc.message
    assert exc.details == {"adapter": "AwsS3", "package": "boto3"}
