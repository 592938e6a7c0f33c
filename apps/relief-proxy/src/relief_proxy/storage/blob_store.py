from __future__ import annotations

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Protocol


class BlobStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the blob body, or ``None`` when nothing is stored under ``key``."""
        raise NotImplementedError

    @abstractmethod
    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        raise NotImplementedError


class RedisLikeBlobClient(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: bytes) -> Any: ...


class InMemoryBlobStore(BlobStore):
    def __init__(self, items: dict[str, bytes] | None = None) -> None:
        self._items: dict[str, bytes] = dict(items or {})

    async def get(self, key: str) -> bytes | None:
        return self._items.get(key)

    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        self._items[key] = body


class FileBlobStore(BlobStore):
    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir)

    async def get(self, key: str) -> bytes | None:
        path = self._path(key)
        return await asyncio.to_thread(self._get_sync, path)

    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        path = self._path(key)
        await asyncio.to_thread(self._put_sync, path, body)

    def _get_sync(self, path: Path) -> bytes | None:
        if not path.exists():
            return None
        return path.read_bytes()

    def _put_sync(self, path: Path, body: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(body)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _path(self, key: str) -> Path:
        relative = Path(key)
        if relative.is_absolute() or ".." in relative.parts:
            raise ValueError(f"invalid blob key: {key}")
        return self._root / relative


class RedisBlobStore(BlobStore):
    def __init__(self, client: RedisLikeBlobClient, namespace: str = "blob:") -> None:
        self._client = client
        self._namespace = namespace

    async def get(self, key: str) -> bytes | None:
        raw = await self._client.get(f"{self._namespace}{key}")
        if raw is None:
            return None
        if isinstance(raw, str):
            return raw.encode("utf-8")
        return bytes(raw)

    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        await self._client.set(f"{self._namespace}{key}", body)


class S3BlobStore(BlobStore):
    _MISSING_CODES = {"NoSuchKey", "404", "NotFound"}

    def __init__(self, bucket: str, prefix: str = "", client: Any | None = None) -> None:
        if not bucket:
            raise ValueError("S3 bucket is required")
        self._bucket = bucket
        self._prefix = prefix.strip("/")
        self._client = client

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._get_sync, self._object_key(key))

    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        await asyncio.to_thread(
            self._s3().put_object,
            Bucket=self._bucket,
            Key=self._object_key(key),
            Body=body,
            ContentType=content_type,
        )

    def _get_sync(self, object_key: str) -> bytes | None:
        from botocore.exceptions import ClientError

        try:
            response = self._s3().get_object(Bucket=self._bucket, Key=object_key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in self._MISSING_CODES:
                return None
            raise
        return response["Body"].read()

    def _object_key(self, key: str) -> str:
        return f"{self._prefix}/{key}" if self._prefix else key

    def _s3(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("s3")
        return self._client
