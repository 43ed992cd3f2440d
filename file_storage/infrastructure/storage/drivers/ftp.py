"""FTP driver on top of ftplib.

ftplib is blocking; each call opens a short-lived connection inside
asyncio.to_thread so the driver is safe for concurrent use.
"""

from __future__ import annotations

import asyncio
import ftplib
import io
import posixpath
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


class FtpStorageDriver:
    """Stores objects below root on an FTP (or FTPS) server."""

    def __init__(
        self,
        host: str,
        username: str = "anonymous",
        password: str = "",
        port: int = 21,
        root: str = "/",
        passive: bool = True,
        ssl: bool = False,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.username = username
        self.password = password
        self.port = port
        self.root = root.rstrip("/") or "/"
        self.passive = passive
        self.ssl = ssl
        self.timeout = timeout

    def _connect(self) -> ftplib.FTP:
        ftp: ftplib.FTP = ftplib.FTP_TLS() if self.ssl else ftplib.FTP()
        ftp.connect(self.host, self.port, timeout=self.timeout)
        ftp.login(self.username, self.password)
        if isinstance(ftp, ftplib.FTP_TLS):
            ftp.prot_p()
        ftp.set_pasv(self.passive)
        return ftp

    def _remote(self, path: str) -> str:
        return posixpath.join(self.root, path.lstrip("/"))

    async def _run(self, operation: Callable[[ftplib.FTP], T]) -> T:
        def _call() -> T:
            ftp = self._connect()
            try:
                return operation(ftp)
            finally:
                try:
                    ftp.quit()
                except ftplib.all_errors:
                    ftp.close()

        return await asyncio.to_thread(_call)

    @staticmethod
    def _ensure_directory(ftp: ftplib.FTP, directory: str) -> None:
        current = ""
        for segment in directory.strip("/").split("/"):
            if not segment:
                continue
            current = f"{current}/{segment}"
            try:
                ftp.mkd(current)
            except ftplib.error_perm:
                # Already exists.
                continue

    async def write(self, path: str, contents: bytes) -> dict[str, Any]:
        remote = self._remote(path)

        def _store(ftp: ftplib.FTP) -> dict[str, Any]:
            self._ensure_directory(ftp, posixpath.dirname(remote))
            ftp.storbinary(f"STOR {remote}", io.BytesIO(contents))
            return {"path": path, "size": len(contents)}

        return await self._run(_store)

    async def read(self, path: str) -> bytes | bool:
        remote = self._remote(path)

        def _retrieve(ftp: ftplib.FTP) -> bytes | bool:
            buffer = io.BytesIO()
            try:
                ftp.retrbinary(f"RETR {remote}", buffer.write)
            except ftplib.error_perm:
                return False
            return buffer.getvalue()

        return await self._run(_retrieve)

    async def has(self, path: str) -> bool:
        remote = self._remote(path)

        def _size(ftp: ftplib.FTP) -> bool:
            try:
                ftp.voidcmd("TYPE I")
                return ftp.size(remote) is not None
            except ftplib.error_perm:
                return False

        return await self._run(_size)

    async def delete(self, path: str) -> bool:
        remote = self._remote(path)

        def _delete(ftp: ftplib.FTP) -> bool:
            try:
                ftp.delete(remote)
            except ftplib.error_perm:
                return False
            return True

        return await self._run(_delete)
