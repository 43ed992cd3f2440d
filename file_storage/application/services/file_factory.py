"""Create File objects from pending uploads and from local disk."""

from __future__ import annotations

import mimetypes
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

from file_storage.domain.exceptions import (
    FileDoesNotExistError,
    FileNotReadableError,
    UploadError,
)
from file_storage.domain.file import File

SKIP_NO_FILE = "no_file"
SKIP_UPLOAD_ERROR = "upload_error"


@dataclass(frozen=True)
class PendingUpload:
    """Framework-neutral upload handed over by the web layer.

    Either temp_path or stream holds the bytes. error_code follows the usual
    upload convention where 0 means success.
    """

    client_filename: str | None = None
    temp_path: str | None = None
    stream: IO[bytes] | None = None
    size: int | None = None
    mime_type: str | None = None
    error_code: int = 0

    def skip_reason(self) -> str | None:
        """Why this upload cannot be stored, or None if it can.

        "no_file" and "upload_error" are distinct reasons; neither is raised.
        """
        if self.error_code:
            return SKIP_UPLOAD_ERROR
        if self.temp_path is None and self.stream is None:
            return SKIP_NO_FILE
        return None


def _guess_mime_type(filename: str) -> str | None:
    return mimetypes.guess_type(filename)[0]


class FileFactory:
    """Builds File objects with a fresh uuid and an open in-flight resource."""

    @staticmethod
    def from_uploaded_file(
        upload: PendingUpload,
        storage: str,
        *,
        collection: str | None = None,
        model: str | None = None,
        model_id: str | int | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> File:
        """Create a File from an upload.

        Raises:
            UploadError: If the upload carries an error code or no bytes.
        """
        if upload.skip_reason() is not None:
            raise UploadError(upload.error_code, upload.client_filename)
        filename = upload.client_filename or (
            os.path.basename(upload.temp_path) if upload.temp_path else "upload"
        )
        if upload.stream is not None:
            resource = upload.stream
            size = upload.size
            if size is None and resource.seekable():
                resource.seek(0, os.SEEK_END)
                size = resource.tell()
                resource.seek(0)
        else:
            resource = open(upload.temp_path, "rb")  # noqa: SIM115
            size = upload.size if upload.size is not None else os.fstat(resource.fileno()).st_size
        return File.create(
            filename=filename,
            filesize=size or 0,
            mime_type=upload.mime_type or _guess_mime_type(filename),
            storage=storage,
            collection=collection,
            model=model,
            model_id=model_id,
            metadata=metadata,
            resource=resource,
        )

    @staticmethod
    def from_disk(
        path: str | Path,
        storage: str,
        *,
        collection: str | None = None,
        model: str | None = None,
        model_id: str | int | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> File:
        """Create a File from a local file.

        Raises:
            FileDoesNotExistError: Path missing or not a regular file.
            FileNotReadableError: Path exists but is not readable.
        """
        local = Path(path)
        if not local.is_file():
            raise FileDoesNotExistError(str(local))
        if not os.access(local, os.R_OK):
            raise FileNotReadableError(str(local))
        return File.create(
            filename=local.name,
            filesize=local.stat().st_size,
            mime_type=_guess_mime_type(local.name),
            storage=storage,
            collection=collection,
            model=model,
            model_id=model_id,
            metadata=metadata,
            resource=open(local, "rb"),  # noqa: SIM115
        )
