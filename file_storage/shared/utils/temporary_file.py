"""Scratch files on the local machine with guaranteed cleanup."""

import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


class TemporaryFile:
    """Create scratch files in a configurable temp directory."""

    _temp_dir: str = ""

    @classmethod
    def set_temp_folder(cls, temp_dir: str) -> None:
        cls._temp_dir = temp_dir

    @classmethod
    def temp_dir(cls) -> str:
        return cls._temp_dir or tempfile.gettempdir()

    @classmethod
    def create(cls, temp_dir: str | None = None, suffix: str = "") -> Path:
        """Create an empty scratch file and return its path. Caller removes it."""
        fd, path = tempfile.mkstemp(dir=temp_dir or cls.temp_dir(), prefix="fs_", suffix=suffix)
        os.close(fd)
        return Path(path)

    @classmethod
    @contextmanager
    def scoped(cls, temp_dir: str | None = None, suffix: str = "") -> Iterator[Path]:
        """Yield a scratch file path that is removed on exit, even on error."""
        path = cls.create(temp_dir, suffix)
        try:
            yield path
        finally:
            path.unlink(missing_ok=True)
