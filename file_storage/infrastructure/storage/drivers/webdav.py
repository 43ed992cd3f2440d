"""WebDAV driver using httpx.AsyncClient."""

from __future__ import annotations

from typing import Any

import httpx

from file_storage.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class WebDAVStorageDriver:
    """Stores objects on a WebDAV server (PUT/GET/HEAD/DELETE, MKCOL for directories)."""

    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        prefix: str = "",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize WebDAV storage.

        Args:
            base_url: Server collection URL (e.g. https://dav.example.com/remote.php/dav).
            username: Basic auth user.
            password: Basic auth password.
            prefix: Path prefix below base_url.
            timeout: Request timeout in seconds.
            http_client: Optional shared httpx.AsyncClient for connection reuse.
        """
        self.base_url = base_url.rstrip("/")
        self.prefix = prefix.strip("/")
        auth = httpx.BasicAuth(username, password or "") if username else None
        self._client = http_client or httpx.AsyncClient(auth=auth, timeout=timeout)

    def _url(self, path: str) -> str:
        parts = [self.base_url]
        if self.prefix:
            parts.append(self.prefix)
        parts.append(path.lstrip("/"))
        return "/".join(parts)

    async def _ensure_collections(self, path: str) -> None:
        segments = path.strip("/").split("/")[:-1]
        current = self.prefix
        for segment in segments:
            current = f"{current}/{segment}" if current else segment
            response = await self._client.request("MKCOL", f"{self.base_url}/{current}")
            # 405: collection already exists
            if response.status_code not in (201, 405):
                logger.debug("MKCOL %s returned %s", current, response.status_code)

    async def write(self, path: str, contents: bytes) -> dict[str, Any] | bool:
        await self._ensure_collections(path)
        response = await self._client.put(self._url(path), content=contents)
        if response.status_code not in (200, 201, 204):
            return False
        return {"path": path, "size": len(contents)}

    async def read(self, path: str) -> bytes | bool:
        response = await self._client.get(self._url(path))
        if response.status_code != 200:
            return False
        return response.content

    async def has(self, path: str) -> bool:
        response = await self._client.head(self._url(path))
        return response.status_code == 200

    async def delete(self, path: str) -> bool:
        response = await self._client.delete(self._url(path))
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True

    async def aclose(self) -> None:
        await self._client.aclose()
