"""In-memory drivers: a dict-backed store and a null sink."""

import asyncio
from typing import Any


class MemoryStorageDriver:
    """Keeps objects in a dict. Useful for tests and ephemeral processing."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._objects: dict[str, bytes] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def write(self, path: str, contents: bytes) -> dict[str, Any]:
        async with self._lock:
            self._objects[path] = bytes(contents)
        return {"path": path, "size": len(contents)}

    async def read(self, path: str) -> bytes | bool:
        return self._objects.get(path, False)

    async def has(self, path: str) -> bool:
        return path in self._objects

    async def delete(self, path: str) -> bool:
        async with self._lock:
            return self._objects.pop(path, None) is not None

    def paths(self) -> list[str]:
        return sorted(self._objects)


class NullStorageDriver:
    """Accepts every write and stores nothing."""

    async def write(self, path: str, contents: bytes) -> dict[str, Any]:
        return {"path": path, "size": len(contents)}

    async def read(self, path: str) -> bool:
        return False

    async def has(self, path: str) -> bool:
        return False

    async def delete(self, path: str) -> bool:
        return False
