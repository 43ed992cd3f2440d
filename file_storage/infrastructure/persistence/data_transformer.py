"""Maps File objects to plain persistence records and back.

The mapping is pure and does no I/O. An upload temp path a record carries
under "file" is exposed through upload_path(); opening it is left to
FileStorageService.store_record. foreign_key is always stored as a string.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from file_storage.domain.file import File


class DataTransformer:
    """File <-> record conversion for the file_storage table."""

    @staticmethod
    def to_file(record: Mapping[str, Any]) -> File:
        foreign_key = record.get("foreign_key")
        return File(
            uuid=str(record["id"]),
            filename=record["filename"],
            filesize=int(record.get("filesize") or 0),
            storage=record["adapter"],
            mime_type=record.get("mime_type"),
            model=record.get("model"),
            model_id=None if foreign_key is None else str(foreign_key),
            collection=record.get("collection"),
            path=record.get("path") or "",
            metadata=record.get("metadata") or {},
            variants=record.get("variants") or {},
        )

    @staticmethod
    def upload_path(record: Mapping[str, Any]) -> str | None:
        """Local path of the upload carried under "file", if any."""
        return record.get("file") or None

    @staticmethod
    def to_record(
        file: File, existing: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Return the record for file.

        Without existing the result is a complete record for first-time
        creation, id included. With existing, unknown keys of existing are
        kept and every mapped field is overwritten.
        """
        record: dict[str, Any] = dict(existing or {})
        record.pop("file", None)
        record.update(
            {
                "id": file.uuid,
                "model": file.model,
                "foreign_key": None if file.model_id is None else str(file.model_id),
                "collection": file.collection,
                "filename": file.filename,
                "filesize": file.filesize,
                "mime_type": file.mime_type,
                "extension": file.extension,
                "adapter": file.storage,
                "path": file.path,
                "metadata": dict(file.metadata),
                "variants": {name: v.to_dict() for name, v in file.variants.items()},
            }
        )
        return record
