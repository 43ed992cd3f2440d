"""Local filesystem driver with path validation and atomic writes."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from file_storage.infrastructure.exceptions import StoragePermissionError


class LocalStorageDriver:
    """Local filesystem storage with atomic writes and path traversal protection.

    Paths are validated against root. Writes use temp file + rename, so a
    reader never sees a partially written object.
    """

    def __init__(
        self,
        root: str,
        directory_permissions: int = 0o750,
        file_permissions: int = 0o640,
    ) -> None:
        """Initialize local storage.

        Args:
            root: Base directory for all files (created if missing).
            directory_permissions: Mode for created directories.
            file_permissions: Mode for written files.
        """
        self.root = Path(root).resolve()
        self.directory_permissions = directory_permissions
        self.file_permissions = file_permissions
        self.root.mkdir(parents=True, exist_ok=True, mode=directory_permissions)

    def _get_full_path(self, path: str) -> Path:
        """Resolve and validate path under root. Raises StoragePermissionError if traversal."""
        full_path = (self.root / path.lstrip("/\\")).resolve()
        try:
            full_path.relative_to(self.root)
        except ValueError as e:
            raise StoragePermissionError(path, "path_validation") from e
        if full_path == self.root:
            raise StoragePermissionError(path, "path_validation")
        return full_path

    async def write(self, path: str, contents: bytes) -> dict[str, Any]:
        """Atomically write contents, replacing an existing file."""
        target_path = self._get_full_path(path)
        target_path.parent.mkdir(parents=True, exist_ok=True, mode=self.directory_permissions)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=target_path.parent,
            prefix=".tmp_",
            suffix=target_path.suffix,
        )
        os.close(temp_fd)
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(contents)
            os.chmod(temp_path, self.file_permissions)
            os.replace(temp_path, target_path)
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
        return {"path": path, "size": len(contents)}

    async def read(self, path: str) -> bytes | bool:
        file_path = self._get_full_path(path)
        if not file_path.is_file():
            return False
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def has(self, path: str) -> bool:
        try:
            return self._get_full_path(path).is_file()
        except StoragePermissionError:
            return False

    async def delete(self, path: str) -> bool:
        """Delete file and prune empty parent directories. Returns True if deleted."""
        file_path = self._get_full_path(path)
        if not file_path.is_file():
            return False
        await aiofiles.os.remove(file_path)
        parent = file_path.parent
        while parent != self.root:
            try:
                if any(parent.iterdir()):
                    break
                parent.rmdir()
                parent = parent.parent
            except OSError:
                break
        return True
