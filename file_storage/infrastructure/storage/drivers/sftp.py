"""SFTP driver on top of paramiko (optional dependency)."""

from __future__ import annotations

import asyncio
import errno
import io
import posixpath
import threading
from typing import Any

import paramiko


class SftpStorageDriver:
    """Stores objects below root over SFTP.

    One SSH transport is opened lazily and shared; SFTP channel calls are
    serialized with a lock because a paramiko SFTPClient is not thread-safe.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str | None = None,
        private_key: str | None = None,
        port: int = 22,
        root: str = "/",
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.username = username
        self.password = password
        self.private_key = private_key
        self.port = port
        self.root = root.rstrip("/") or "/"
        self.timeout = timeout
        self._ssh: paramiko.SSHClient | None = None
        self._sftp: paramiko.SFTPClient | None = None
        self._lock = threading.Lock()

    def _client(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            ssh = paramiko.SSHClient()
            ssh.set_missing_host_key_policy(paramiko.RejectPolicy())
            ssh.load_system_host_keys()
            ssh.connect(
                self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                key_filename=self.private_key,
                timeout=self.timeout,
            )
            self._ssh = ssh
            self._sftp = ssh.open_sftp()
        return self._sftp

    def _remote(self, path: str) -> str:
        return posixpath.join(self.root, path.lstrip("/"))

    def _makedirs(self, sftp: paramiko.SFTPClient, directory: str) -> None:
        current = ""
        for segment in directory.strip("/").split("/"):
            if not segment:
                continue
            current = f"{current}/{segment}"
            try:
                sftp.stat(current)
            except FileNotFoundError:
                sftp.mkdir(current)

    async def write(self, path: str, contents: bytes) -> dict[str, Any]:
        remote = self._remote(path)

        def _put() -> dict[str, Any]:
            with self._lock:
                sftp = self._client()
                self._makedirs(sftp, posixpath.dirname(remote))
                sftp.putfo(io.BytesIO(contents), remote)
            return {"path": path, "size": len(contents)}

        return await asyncio.to_thread(_put)

    async def read(self, path: str) -> bytes | bool:
        remote = self._remote(path)

        def _get() -> bytes | bool:
            buffer = io.BytesIO()
            with self._lock:
                try:
                    self._client().getfo(remote, buffer)
                except FileNotFoundError:
                    return False
            return buffer.getvalue()

        return await asyncio.to_thread(_get)

    async def has(self, path: str) -> bool:
        remote = self._remote(path)

        def _stat() -> bool:
            with self._lock:
                try:
                    self._client().stat(remote)
                except FileNotFoundError:
                    return False
            return True

        return await asyncio.to_thread(_stat)

    async def delete(self, path: str) -> bool:
        remote = self._remote(path)

        def _remove() -> bool:
            with self._lock:
                try:
                    self._client().remove(remote)
                except OSError as e:
                    if isinstance(e, FileNotFoundError) or e.errno == errno.ENOENT:
                        return False
                    raise
            return True

        return await asyncio.to_thread(_remove)

    def close(self) -> None:
        with self._lock:
            if self._sftp is not None:
                self._sftp.close()
                self._sftp = None
            if self._ssh is not None:
                self._ssh.close()
                self._ssh = None
