"""Zip archive driver: every object is an entry of one archive on disk."""

from __future__ import annotations

import asyncio
import os
import tempfile
import threading
import zipfile
from pathlib import Path
from typing import Any


class ZipArchiveStorageDriver:
    """Stores objects as entries of the zip archive at location.

    zipfile cannot replace or delete entries in place, so overwrites and
    deletes rewrite the archive to a temp file and rename it over the old one.
    All archive access is serialized by a lock.
    """

    def __init__(self, location: str, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self.location = Path(location)
        self.compression = compression
        self._lock = threading.Lock()
        self.location.parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _entry(path: str) -> str:
        return path.replace("\\", "/").lstrip("/")

    def _names(self) -> set[str]:
        if not self.location.exists():
            return set()
        with zipfile.ZipFile(self.location) as archive:
            return set(archive.namelist())

    def _rewrite_without(self, entry: str) -> None:
        fd, temp_path = tempfile.mkstemp(dir=self.location.parent, suffix=".zip")
        os.close(fd)
        try:
            with zipfile.ZipFile(self.location) as src, zipfile.ZipFile(
                temp_path, "w", self.compression
            ) as dst:
                for info in src.infolist():
                    if info.filename != entry:
                        dst.writestr(info, src.read(info))
            os.replace(temp_path, self.location)
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

    async def write(self, path: str, contents: bytes) -> dict[str, Any]:
        entry = self._entry(path)

        def _write() -> dict[str, Any]:
            with self._lock:
                if entry in self._names():
                    self._rewrite_without(entry)
                with zipfile.ZipFile(self.location, "a", self.compression) as archive:
                    archive.writestr(entry, contents)
            return {"path": path, "size": len(contents)}

        return await asyncio.to_thread(_write)

    async def read(self, path: str) -> bytes | bool:
        entry = self._entry(path)

        def _read() -> bytes | bool:
            with self._lock:
                if entry not in self._names():
                    return False
                with zipfile.ZipFile(self.location) as archive:
                    return archive.read(entry)

        return await asyncio.to_thread(_read)

    async def has(self, path: str) -> bool:
        entry = self._entry(path)

        def _has() -> bool:
            with self._lock:
                return entry in self._names()

        return await asyncio.to_thread(_has)

    async def delete(self, path: str) -> bool:
        entry = self._entry(path)

        def _delete() -> bool:
            with self._lock:
                if entry not in self._names():
                    return False
                self._rewrite_without(entry)
                return True

        return await asyncio.to_thread(_delete)
