"""S3-compatible object storage (AWS S3, MinIO, etc.)."""

from __future__ import annotations

import asyncio
import mimetypes
from typing import Any

import boto3
from botocore.exceptions import ClientError

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3StorageDriver:
    """S3-compatible storage with server-side encryption.

    Uses boto3 (sync) via asyncio.to_thread for async API. Compatible with
    AWS S3, MinIO, DigitalOcean Spaces.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        prefix: str = "",
        server_side_encryption: str | None = "AES256",
        client: Any = None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/Spaces).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            prefix: Key prefix prepended to every path.
            server_side_encryption: SSE algorithm, or None to disable.
            client: Pre-built boto3 client (tests, shared sessions).
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.prefix = prefix.strip("/")
        self.server_side_encryption = server_side_encryption
        if client is None:
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                **extra,
            )
        self._client = client

    def _key(self, path: str) -> str:
        path = path.lstrip("/")
        return f"{self.prefix}/{path}" if self.prefix else path

    @staticmethod
    def _is_not_found(error: ClientError) -> bool:
        return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES

    async def write(self, path: str, contents: bytes) -> dict[str, Any]:
        key = self._key(path)

        def _put() -> dict[str, Any]:
            params: dict[str, Any] = {
                "Bucket": self.bucket,
                "Key": key,
                "Body": contents,
                "ContentType": mimetypes.guess_type(path)[0] or "application/octet-stream",
            }
            if self.server_side_encryption:
                params["ServerSideEncryption"] = self.server_side_encryption
            response = self._client.put_object(**params)
            return {"path": path, "size": len(contents), "etag": response.get("ETag")}

        return await asyncio.to_thread(_put)

    async def read(self, path: str) -> bytes | bool:
        def _get() -> bytes | bool:
            try:
                response = self._client.get_object(Bucket=self.bucket, Key=self._key(path))
            except ClientError as e:
                if self._is_not_found(e):
                    return False
                raise
            return response["Body"].read()

        return await asyncio.to_thread(_get)

    async def has(self, path: str) -> bool:
        def _exists() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=self._key(path))
                return True
            except ClientError as e:
                if self._is_not_found(e):
                    return False
                raise

        return await asyncio.to_thread(_exists)

    async def delete(self, path: str) -> bool:
        """Delete object. Returns True if deleted."""
        key = self._key(path)

        def _delete() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if self._is_not_found(e):
                    return False
                raise
            self._client.delete_object(Bucket=self.bucket, Key=key)
            return True

        return await asyncio.to_thread(_delete)
