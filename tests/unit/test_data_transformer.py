"""Unit tests for DataTransformer and the FileStorage ORM model."""

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from file_storage.domain.file import File
from file_storage.infrastructure.persistence.data_transformer import DataTransformer
from file_storage.infrastructure.persistence.database import Base
from file_storage.infrastructure.persistence.models import FileStorageModel


@pytest.fixture
def stored_file(make_file) -> File:
    return (
        make_file(filesize=1234, metadata={"alt": "A cake"})
        .with_path("Item/Photos/ab/cake.png")
        .with_variant("thumb", {"operations": {"resize": {"width": 50}}, "path": "Item/thumb.png"})
    )


def test_to_record_is_complete(stored_file) -> None:
    record = DataTransformer.to_record(stored_file)
    assert record["id"] == stored_file.uuid
    assert record["foreign_key"] == "42"
    assert record["adapter"] == "Local"
    assert record["extension"] == "png"
    assert record["variants"]["thumb"]["path"] == "Item/thumb.png"
    assert record["metadata"] == {"alt": "A cake"}


def test_round_trip(stored_file) -> None:
    restored = DataTransformer.to_file(DataTransformer.to_record(stored_file))
    assert restored.model_id == "42"
    assert restored == stored_file.belongs_to_model("Item", "42")


def test_update_keeps_unknown_keys_and_drops_upload(stored_file) -> None:
    existing = {"id": stored_file.uuid, "tenant": "acme", "file": "/tmp/php123", "filename": "old.png"}
    record = DataTransformer.to_record(stored_file, existing)
    assert record["tenant"] == "acme"
    assert record["filename"] == "cake.png"
    assert "file" not in record


def test_to_file_leaves_upload_unopened() -> None:
    record = {"id": "1", "filename": "a.txt", "adapter": "Local", "foreign_key": 9, "file": "/tmp/php123"}
    file = DataTransformer.to_file(record)
    assert file.model_id == "9"
    assert file.resource is None
    assert DataTransformer.upload_path(record) == "/tmp/php123"


def test_upload_path_absent(stored_file) -> None:
    assert DataTransformer.upload_path(DataTransformer.to_record(stored_file)) is None
    assert DataTransformer.upload_path({"file": ""}) is None


def test_model_persists_record(stored_file) -> None:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    record = DataTransformer.to_record(stored_file)

    with Session(engine) as session:
        session.add(FileStorageModel.from_record(record))
        session.commit()

    with Session(engine) as session:
        row = session.scalars(select(FileStorageModel)).one()
        assert row.created_at is not None
        assert row.to_record() == record
        restored = DataTransformer.to_file(row.to_record())
        assert restored.variant_path("thumb") == "Item/thumb.png"
    engine.dispose()
