"""FileStorage ORM model. One row per stored original with its variants."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from file_storage.infrastructure.persistence.database import Base

RECORD_FIELDS = (
    "id",
    "model",
    "foreign_key",
    "collection",
    "filename",
    "filesize",
    "mime_type",
    "extension",
    "adapter",
    "path",
    "metadata",
    "variants",
)


class FileStorageModel(Base):
    """File storage entity. Table: file_storage.

    id is the File uuid and is always assigned by the core, never generated
    by the database.
    """

    __tablename__ = "file_storage"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    model: Mapped[str | None] = mapped_column(String, nullable=True)
    foreign_key: Mapped[str | None] = mapped_column(String, nullable=True)
    collection: Mapped[str | None] = mapped_column(String, nullable=True)
    filename: Mapped[str] = mapped_column(String, nullable=False)
    filesize: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mime_type: Mapped[str | None] = mapped_column(String, nullable=True)
    extension: Mapped[str | None] = mapped_column(String, nullable=True)
    adapter: Mapped[str] = mapped_column(String, nullable=False)
    path: Mapped[str] = mapped_column(String, nullable=False, default="")
    # "metadata" is reserved on declarative classes.
    file_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    variants: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_file_storage_owner", "model", "foreign_key", "collection"),
    )

    def to_record(self) -> dict[str, Any]:
        """Plain record understood by DataTransformer."""
        return {
            "id": self.id,
            "model": self.model,
            "foreign_key": self.foreign_key,
            "collection": self.collection,
            "filename": self.filename,
            "filesize": self.filesize,
            "mime_type": self.mime_type,
            "extension": self.extension,
            "adapter": self.adapter,
            "path": self.path,
            "metadata": dict(self.file_metadata or {}),
            "variants": dict(self.variants or {}),
        }

    def apply_record(self, record: dict[str, Any]) -> "FileStorageModel":
        """Copy every record field onto this row."""
        for key in RECORD_FIELDS:
            if key not in record:
                continue
            attr = "file_metadata" if key == "metadata" else key
            setattr(self, attr, record[key])
        return self

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "FileStorageModel":
        return cls().apply_record(record)
