"""Unit tests for storage drivers that need no external service."""

import ftplib
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from file_storage.infrastructure.exceptions import StoragePermissionError
from file_storage.infrastructure.storage.drivers.ftp import FtpStorageDriver
from file_storage.infrastructure.storage.drivers.local import LocalStorageDriver
from file_storage.infrastructure.storage.drivers.memory import (
    MemoryStorageDriver,
    NullStorageDriver,
)
from file_storage.infrastructure.storage.drivers.replicate import ReplicateStorageDriver
from file_storage.infrastructure.storage.drivers.webdav import WebDAVStorageDriver
from file_storage.infrastructure.storage.drivers.zip_archive import ZipArchiveStorageDriver


class TestLocalStorageDriver:
    @pytest.mark.asyncio
    async def test_overwrite_is_atomic_replace(self, tmp_path) -> None:
        driver = LocalStorageDriver(str(tmp_path))
        await driver.write("a/b.txt", b"one")
        await driver.write("a/b.txt", b"two")
        assert await driver.read("a/b.txt") == b"two"
        assert [p.name for p in (tmp_path / "a").iterdir()] == ["b.txt"]

    @pytest.mark.asyncio
    async def test_delete_prunes_empty_parents(self, tmp_path) -> None:
        driver = LocalStorageDriver(str(tmp_path))
        await driver.write("x/y/z.txt", b"data")
        assert await driver.delete("x/y/z.txt") is True
        assert not (tmp_path / "x").exists()
        assert tmp_path.exists()

    @pytest.mark.asyncio
    async def test_missing(self, tmp_path) -> None:
        driver = LocalStorageDriver(str(tmp_path))
        assert await driver.read("nope.txt") is False
        assert await driver.has("nope.txt") is False
        assert await driver.delete("nope.txt") is False

    @pytest.mark.asyncio
    async def test_traversal(self, tmp_path) -> None:
        driver = LocalStorageDriver(str(tmp_path / "root"))
        with pytest.raises(StoragePermissionError):
            await driver.write("../../etc/passwd", b"x")
        assert await driver.has("../outside.txt") is False


class TestMemoryDrivers:
    @pytest.mark.asyncio
    async def test_memory_round_trip(self) -> None:
        driver = MemoryStorageDriver()
        await driver.write("a.txt", b"a")
        assert await driver.has("a.txt")
        assert await driver.read("a.txt") == b"a"
        assert driver.paths() == ["a.txt"]
        assert await driver.delete("a.txt") is True
        assert await driver.delete("a.txt") is False

    @pytest.mark.asyncio
    async def test_null_stores_nothing(self) -> None:
        driver = NullStorageDriver()
        assert (await driver.write("a.txt", b"abc"))["size"] == 3
        assert await driver.has("a.txt") is False
        assert await driver.read("a.txt") is False


class TestReplicateDriver:
    @pytest.mark.asyncio
    async def test_writes_both_reads_source(self) -> None:
        source, target = MemoryStorageDriver(), MemoryStorageDriver()
        driver = ReplicateStorageDriver(source, target)
        await driver.write("a.txt", b"a")
        assert await source.read("a.txt") == b"a"
        assert await target.read("a.txt") == b"a"
        await target.delete("a.txt")
        assert await driver.read("a.txt") == b"a"

    @pytest.mark.asyncio
    async def test_target_failure_reported(self) -> None:
        target = AsyncMock()
        target.write = AsyncMock(return_value=False)
        driver = ReplicateStorageDriver(MemoryStorageDriver(), target)
        assert await driver.write("a.txt", b"a") is False

    @pytest.mark.asyncio
    async def test_delete_from_both(self) -> None:
        source, target = MemoryStorageDriver(), MemoryStorageDriver()
        driver = ReplicateStorageDriver(source, target)
        await driver.write("a.txt", b"a")
        assert await driver.delete("a.txt") is True
        assert not await target.has("a.txt")


class TestZipArchiveDriver:
    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path) -> None:
        driver = ZipArchiveStorageDriver(str(tmp_path / "files.zip"))
        await driver.write("a/b.txt", b"one")
        await driver.write("c.txt", b"two")
        assert await driver.read("a/b.txt") == b"one"
        assert await driver.has("c.txt")

    @pytest.mark.asyncio
    async def test_overwrite_and_delete(self, tmp_path) -> None:
        driver = ZipArchiveStorageDriver(str(tmp_path / "files.zip"))
        await driver.write("a.txt", b"one")
        await driver.write("a.txt", b"two")
        assert await driver.read("a.txt") == b"two"
        assert await driver.delete("a.txt") is True
        assert await driver.delete("a.txt") is False
        assert await driver.read("a.txt") is False


class TestWebDAVDriver:
    @staticmethod
    def _server() -> tuple[dict[str, bytes], httpx.AsyncClient]:
        objects: dict[str, bytes] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if request.method == "MKCOL":
                return httpx.Response(201)
            if request.method == "PUT":
                objects[path] = request.content
                return httpx.Response(201)
            if path not in objects:
                return httpx.Response(404)
            if request.method == "GET":
                return httpx.Response(200, content=objects[path])
            if request.method == "HEAD":
                return httpx.Response(200)
            if request.method == "DELETE":
                del objects[path]
                return httpx.Response(204)
            return httpx.Response(405)

        return objects, httpx.AsyncClient(transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_round_trip(self) -> None:
        objects, client = self._server()
        driver = WebDAVStorageDriver("https://dav.example.com/files", prefix="app", http_client=client)
        assert await driver.write("a/b.txt", b"data") == {"path": "a/b.txt", "size": 4}
        assert "/files/app/a/b.txt" in objects
        assert await driver.has("a/b.txt")
        assert await driver.read("a/b.txt") == b"data"
        assert await driver.delete("a/b.txt") is True
        assert await driver.delete("a/b.txt") is False
        assert await driver.read("a/b.txt") is False
        await driver.aclose()


class TestS3Driver:
    @pytest.mark.asyncio
    async def test_write_uses_client(self) -> None:
        pytest.importorskip("boto3")
        from file_storage.infrastructure.storage.drivers.s3 import S3StorageDriver

        client = MagicMock()
        client.put_object.return_value = {"ETag": '"abc"'}
        driver = S3StorageDriver("files", prefix="media", client=client)
        result = await driver.write("a/b.png", b"data")
        assert result["size"] == 4
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Key"] == "media/a/b.png"
        assert kwargs["ContentType"] == "image/png"
        assert kwargs["ServerSideEncryption"] == "AES256"

    @pytest.mark.asyncio
    async def test_missing_object(self) -> None:
        pytest.importorskip("boto3")
        from botocore.exceptions import ClientError

        from file_storage.infrastructure.storage.drivers.s3 import S3StorageDriver

        client = MagicMock()
        error = ClientError({"Error": {"Code": "404"}}, "HeadObject")
        client.head_object.side_effect = error
        client.get_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        driver = S3StorageDriver("files", client=client)
        assert await driver.has("a.png") is False
        assert await driver.read("a.png") is False
        assert await driver.delete("a.png") is False
        client.delete_object.assert_not_called()


class TestFtpDriver:
    @staticmethod
    def _ftp(monkeypatch) -> MagicMock:
        ftp = MagicMock()
        monkeypatch.setattr(
            "file_storage.infrastructure.storage.drivers.ftp.ftplib.FTP", lambda: ftp
        )
        return ftp

    @pytest.mark.asyncio
    async def test_write_creates_directories(self, monkeypatch) -> None:
        ftp = self._ftp(monkeypatch)
        ftp.mkd.side_effect = [ftplib.error_perm("550 exists"), None]
        driver = FtpStorageDriver("ftp.example.com", root="/data")
        assert await driver.write("a/b.txt", b"abc") == {"path": "a/b.txt", "size": 3}
        ftp.connect.assert_called_once_with("ftp.example.com", 21, timeout=30.0)
        assert ftp.storbinary.call_args.args[0] == "STOR /data/a/b.txt"
        ftp.quit.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_file(self, monkeypatch) -> None:
        ftp = self._ftp(monkeypatch)
        ftp.retrbinary.side_effect = ftplib.error_perm("550 not found")
        ftp.size.side_effect = ftplib.error_perm("550 not found")
        ftp.delete.side_effect = ftplib.error_perm("550 not found")
        driver = FtpStorageDriver("ftp.example.com")
        assert await driver.read("a.txt") is False
        assert await driver.has("a.txt") is False
        assert await driver.delete("a.txt") is False


class TestSftpDriver:
    @staticmethod
    def _driver():
        pytest.importorskip("paramiko")
        from file_storage.infrastructure.storage.drivers.sftp import SftpStorageDriver

        driver = SftpStorageDriver("sftp.example.com", "deploy", root="/srv")
        driver._sftp = MagicMock()
        return driver, driver._sftp

    @pytest.mark.asyncio
    async def test_write_makes_missing_directories(self) -> None:
        driver, sftp = self._driver()
        sftp.stat.side_effect = [None, FileNotFoundError()]
        await driver.write("a/b.txt", b"abc")
        sftp.mkdir.assert_called_once_with("/srv/a")
        assert sftp.putfo.call_args.args[1] == "/srv/a/b.txt"

    @pytest.mark.asyncio
    async def test_missing_file(self) -> None:
        driver, sftp = self._driver()
        sftp.getfo.side_effect = FileNotFoundError()
        sftp.stat.side_effect = FileNotFoundError()
        sftp.remove.side_effect = FileNotFoundError()
        assert await driver.read("a.txt") is False
        assert await driver.has("a.txt") is False
        assert await driver.delete("a.txt") is False
        driver.close()
        sftp.close.assert_called_once()
