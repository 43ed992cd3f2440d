"""Replicate driver: mirrors writes and deletes to a second driver."""

from typing import Any

from file_storage.infrastructure.storage.protocol import StorageDriver


class ReplicateStorageDriver:
    """Writes to source then target; reads and existence checks use source.

    No consistency guarantee is made between the two: a failed target write
    after a successful source write is reported as a failure.
    """

    def __init__(self, source: StorageDriver, target: StorageDriver) -> None:
        self.source = source
        self.target = target

    async def write(self, path: str, contents: bytes) -> dict[str, Any] | bool:
        result = await self.source.write(path, contents)
        if result is False:
            return False
        if await self.target.write(path, contents) is False:
            return False
        return result

    async def read(self, path: str) -> bytes | bool:
        return await self.source.read(path)

    async def has(self, path: str) -> bool:
        return await self.source.has(path)

    async def delete(self, path: str) -> bool:
        deleted = await self.source.delete(path)
        await self.target.delete(path)
        return deleted
