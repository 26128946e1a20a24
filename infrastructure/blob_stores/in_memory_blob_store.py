from __future__ import annotations

import datetime
import hashlib
import io
from typing import BinaryIO

import structlog

from domain.exceptions import BlobNotFoundError
from domain.services import storage_path
from domain.value_objects.blob import Blob, BlobItemKind
from domain.value_objects.list_options import ListOptions

logger = structlog.get_logger()


class _Entry:
    __slots__ = ("blob", "data")

    def __init__(self, blob: Blob, data: bytes) -> None:
        self.blob = blob
        self.data = data


class InMemoryBlobStore:
    """Dictionary backed store primitives, mostly useful for tests and caching.

    Only files are stored. Folders exist implicitly while at least one file
    lives below them.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    async def list_at(self, folder_path: str, options: ListOptions) -> list[Blob]:
        prefix = "" if storage_path.is_root_path(folder_path) else folder_path
        prefix += storage_path.PATH_SEPARATOR

        result: list[Blob] = []
        folders: set[str] = set()
        for full_path, entry in self._entries.items():
            if not full_path.startswith(prefix):
                continue
            relative = storage_path.split(full_path[len(prefix) :])
            if len(relative) == 1:
                result.append(entry.blob.model_copy(deep=True))
            elif relative[0] not in folders:
                folders.add(relative[0])
                result.append(Blob(folder_path=folder_path, name=relative[0], kind=BlobItemKind.FOLDER))
        return result

    async def get_blob(self, full_path: str) -> Blob | None:
        entry = self._entries.get(full_path)
        return None if entry is None else entry.blob.model_copy(deep=True)

    async def exists_single(self, full_path: str) -> bool:
        return full_path in self._entries

    async def delete_single(self, full_path: str) -> None:
        if self._entries.pop(full_path, None) is None:
            raise BlobNotFoundError(full_path)

    async def open_read(self, full_path: str) -> BinaryIO | None:
        entry = self._entries.get(full_path)
        return None if entry is None else io.BytesIO(entry.data)

    async def write(self, full_path: str, source: BinaryIO, append: bool) -> None:
        data = source.read()
        existing = self._entries.get(full_path)
        if append and existing is not None:
            data = existing.data + data

        blob = Blob.from_path(
            full_path,
            size=len(data),
            last_modification_time=datetime.datetime.now(datetime.UTC),
            md5=hashlib.md5(data).hexdigest(),  # noqa: S324
        )
        if existing is not None:
            blob.metadata = dict(existing.blob.metadata)
        self._entries[full_path] = _Entry(blob, data)

    async def set_blob(self, blob: Blob) -> None:
        entry = self._entries.get(blob.full_path)
        if entry is None:
            logger.debug("set_blob_skipped_missing", full_path=blob.full_path)
            return
        entry.blob.metadata = dict(blob.metadata)
