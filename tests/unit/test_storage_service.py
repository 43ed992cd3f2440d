"""Unit tests for StorageService error normalization and adapter configuration."""

import io
from unittest.mock import AsyncMock

import pytest

from file_storage.application.services.storage_service import StorageService
from file_storage.core.config import Settings
from file_storage.infrastructure.exceptions import (
    AdapterNotFoundError,
    FactoryConfigError,
    FactoryNotFoundError,
    StorageDeleteError,
    StoragePermissionError,
    StorageReadError,
    StorageWriteError,
)
from file_storage.infrastructure.storage.drivers.local import LocalStorageDriver
from file_storage.infrastructure.storage.registry import AdapterState


def _broken_driver(**behaviour) -> AsyncMock:
    driver = AsyncMock()
    driver.write = AsyncMock(**behaviour.get("write", {"return_value": {"path": "p", "size": 1}}))
    driver.read = AsyncMock(**behaviour.get("read", {"return_value": b"x"}))
    driver.has = AsyncMock(**behaviour.get("has", {"return_value": True}))
    driver.delete = AsyncMock(**behaviour.get("delete", {"return_value": True}))
    return driver


@pytest.mark.asyncio
async def test_store_read_exists_remove_local(storage, storage_root) -> None:
    result = await storage.store("Local", "Item/Photos/cake.png", b"cake")
    assert result["size"] == 4
    assert (storage_root / "Item/Photos/cake.png").read_bytes() == b"cake"
    assert await storage.exists("Local", "Item/Photos/cake.png")
    assert await storage.read("Local", "Item/Photos/cake.png") == b"cake"
    assert await storage.remove("Local", "Item/Photos/cake.png") is True
    assert not await storage.exists("Local", "Item/Photos/cake.png")


@pytest.mark.asyncio
async def test_remove_twice_returns_false(storage) -> None:
    await storage.store("Memory", "a/b.png", b"x")
    assert await storage.remove("Memory", "a/b.png") is True
    assert await storage.remove("Memory", "a/b.png") is False


@pytest.mark.asyncio
async def test_store_stream_is_rewound(storage) -> None:
    stream = io.BytesIO(b"stream-data")
    stream.read()
    await storage.store("Memory", "s.bin", stream)
    assert await storage.read("Memory", "s.bin") == b"stream-data"


@pytest.mark.asyncio
async def test_store_file(storage, tmp_path) -> None:
    local = tmp_path / "cake.png"
    local.write_bytes(b"cake")
    await storage.store_file("Memory", "cake.png", local)
    assert await storage.read("Memory", "cake.png") == b"cake"


@pytest.mark.asyncio
async def test_driver_false_becomes_write_error(storage) -> None:
    storage.registry.add("Broken", _broken_driver(write={"return_value": False}))
    with pytest.raises(StorageWriteError) as exc_info:
        await storage.store("Broken", "a.png", b"")
    assert exc_info.value.details["adapter"] == "Broken"
    assert exc_info.value.details["path"] == "a.png"


@pytest.mark.asyncio
async def test_driver_exception_becomes_write_error(storage) -> None:
    storage.registry.add("Broken", _broken_driver(write={"side_effect": OSError("disk full")}))
    with pytest.raises(StorageWriteError) as exc_info:
        await storage.store("Broken", "a.png", b"x")
    assert isinstance(exc_info.value.__cause__, OSError)
    assert exc_info.value.details["reason"] == "disk full"


@pytest.mark.asyncio
async def test_read_missing_is_read_error(storage) -> None:
    with pytest.raises(StorageReadError):
        await storage.read("Memory", "missing.png")


@pytest.mark.asyncio
async def test_delete_failure_is_delete_error(storage) -> None:
    storage.registry.add("Broken", _broken_driver(delete={"side_effect": RuntimeError("boom")}))
    with pytest.raises(StorageDeleteError):
        await storage.remove("Broken", "a.png")


@pytest.mark.asyncio
async def test_path_traversal_rejected(storage) -> None:
    with pytest.raises(StoragePermissionError):
        await storage.store("Local", "../evil.txt", b"x")


@pytest.mark.asyncio
async def test_unknown_adapter(storage) -> None:
    with pytest.raises(AdapterNotFoundError):
        await storage.store("S3", "a.png", b"x")


def test_adapters_are_built_lazily(storage) -> None:
    assert storage.registry.state("Local") is AdapterState.CONFIGURED
    assert isinstance(storage.get_adapter("Local"), LocalStorageDriver)
    assert storage.registry.state("Local") is AdapterState.BUILT


def test_set_adapter_config_from_dict(tmp_path) -> None:
    service = StorageService()
    service.set_adapter_config_from_dict(
        {
            "Local": {"class": "Local", "options": {"root": str(tmp_path)}},
            "Scratch": {"class": "memory"},
        }
    )
    assert service.adapters == ["Local", "Scratch"]


@pytest.mark.parametrize(
    "config",
    [
        {"Local": {"options": {}}},
        {"Local": {"class": "Local", "options": ["root"]}},
    ],
)
def test_set_adapter_config_from_dict_invalid(config) -> None:
    with pytest.raises(FactoryConfigError):
        StorageService().set_adapter_config_from_dict(config)


def test_set_adapter_config_unknown_factory() -> None:
    with pytest.raises(FactoryNotFoundError):
        StorageService().set_adapter_config_from_dict({"Box": {"class": "dropbox"}})


def test_from_settings_registers_default_local(tmp_path) -> None:
    settings = Settings(storage_root=str(tmp_path))
    service = StorageService.from_settings(settings)
    assert service.adapters == ["Local"]
    assert isinstance(service.get_adapter("Local"), LocalStorageDriver)
