"""Pytest configuration and fixtures for file-storage.

Local-disk scenarios use tmp_path; images are generated with Pillow so no
binary fixtures are checked in.
"""

import io
from collections.abc import Callable

import pytest
from PIL import Image

from file_storage.application.services.path_builder import PathBuilder
from file_storage.application.services.storage_service import StorageService
from file_storage.core.config import get_settings
from file_storage.domain.file import File


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; tests that override env need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Return a factory producing PNG bytes of the given size and color."""

    def _make(width: int = 100, height: int = 80, color: str = "red") -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def storage(storage_root) -> StorageService:
    """StorageService with a Local adapter rooted at a temp directory and a Memory adapter."""
    service = StorageService()
    service.add_adapter_config("Local", "local", {"root": str(storage_root)})
    service.add_adapter_config("Memory", "memory")
    return service


@pytest.fixture
def path_builder() -> PathBuilder:
    return PathBuilder(directory_separator="/")


@pytest.fixture
def make_file() -> Callable[..., File]:
    """Return a factory for File objects with sensible defaults."""

    def _make(**overrides) -> File:
        values = {
            "filename": "cake.png",
            "filesize": 0,
            "mime_type": "image/png",
            "storage": "Local",
            "collection": "Photos",
            "model": "Item",
            "model_id": 42,
        }
        values.update(overrides)
        return File.create(**values)

    return _make
