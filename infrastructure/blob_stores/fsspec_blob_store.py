from __future__ import annotations

import asyncio
import datetime
from typing import Any, BinaryIO

import fsspec
import structlog

from domain.exceptions import AccessDeniedError, BlobNotFoundError
from domain.services import storage_path
from domain.value_objects.blob import Blob, BlobItemKind
from domain.value_objects.list_options import ListOptions

logger = structlog.get_logger()

_CHUNK_SIZE = 1024 * 1024


class FsspecBlobStore:
    """Store primitives over any fsspec filesystem (``file://``, ``memory://``, ``s3://``...).

    Blob paths are resolved below the path component of ``base_url``. Blocking
    filesystem calls run in a worker thread.
    """

    def __init__(self, base_url: str, *, storage_options: dict | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.storage_options = storage_options or {}
        self.fs, root = fsspec.core.url_to_fs(self.base_url, **self.storage_options)
        self.root = root.rstrip("/")

    def _path(self, full_path: str) -> str:
        if storage_path.is_root_path(full_path):
            return self.root or "/"
        return f"{self.root}{full_path}"

    async def list_at(self, folder_path: str, options: ListOptions) -> list[Blob]:
        path = self._path(folder_path)
        try:
            entries = await asyncio.to_thread(self.fs.ls, path, detail=True)
        except FileNotFoundError:
            if storage_path.is_root_path(folder_path):
                return []
            raise BlobNotFoundError(folder_path) from None
        except PermissionError:
            raise AccessDeniedError(folder_path) from None

        result: list[Blob] = []
        for info in entries:
            name = info["name"].rstrip("/").rsplit("/", 1)[-1]
            if not name or info["name"].rstrip("/") == path.rstrip("/"):
                continue
            result.append(self._to_blob(folder_path, name, info, options.include_attributes))
        return result

    async def get_blob(self, full_path: str) -> Blob | None:
        try:
            info = await asyncio.to_thread(self.fs.info, self._path(full_path))
        except FileNotFoundError:
            return None
        except PermissionError:
            raise AccessDeniedError(full_path) from None
        return self._to_blob(
            storage_path.get_parent(full_path),
            storage_path.get_name(full_path),
            info,
            include_attributes=True,
        )

    async def exists_single(self, full_path: str) -> bool:
        return await asyncio.to_thread(self.fs.exists, self._path(full_path))

    async def delete_single(self, full_path: str) -> None:
        await asyncio.to_thread(self._delete, full_path)

    def _delete(self, full_path: str) -> None:
        path = self._path(full_path)
        try:
            if self.fs.isdir(path):
                self.fs.rm(path, recursive=True)
            else:
                self.fs.rm(path)
        except FileNotFoundError:
            raise BlobNotFoundError(full_path) from None
        except PermissionError:
            raise AccessDeniedError(full_path) from None

    async def open_read(self, full_path: str) -> BinaryIO | None:
        try:
            return await asyncio.to_thread(self.fs.open, self._path(full_path), "rb")
        except (FileNotFoundError, IsADirectoryError):
            return None
        except PermissionError:
            raise AccessDeniedError(full_path) from None

    async def write(self, full_path: str, source: BinaryIO, append: bool) -> None:
        try:
            size = await asyncio.to_thread(self._write, full_path, source, append)
        except PermissionError:
            raise AccessDeniedError(full_path) from None
        logger.debug("fsspec_blob_written", full_path=full_path, size=size, append=append)

    def _write(self, full_path: str, source: BinaryIO, append: bool) -> int:
        path = self._path(full_path)
        self.fs.makedirs(self._path(storage_path.get_parent(full_path)), exist_ok=True)

        size = 0
        with self.fs.open(path, "ab" if append else "wb") as out:
            while True:
                chunk = source.read(_CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                size += len(chunk)
        return size

    def _to_blob(
        self,
        folder_path: str,
        name: str,
        info: dict[str, Any],
        include_attributes: bool,
    ) -> Blob:
        is_folder = info.get("type") == "directory"
        blob = Blob(
            folder_path=folder_path,
            name=name,
            kind=BlobItemKind.FOLDER if is_folder else BlobItemKind.FILE,
        )
        if is_folder:
            return blob

        blob.size = info.get("size")
        blob.last_modification_time = _modification_time(info)
        if include_attributes:
            blob.properties = {
                k: str(v) for k, v in info.items() if k not in ("name", "size", "type") and v is not None
            }
        return blob


def _modification_time(info: dict[str, Any]) -> datetime.datetime | None:
    value = info.get("mtime", info.get("LastModified", info.get("created")))
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value if value.tzinfo else value.replace(tzinfo=datetime.UTC)
    return datetime.datetime.fromtimestamp(float(value), tz=datetime.UTC)
