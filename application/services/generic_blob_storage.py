from __future__ import annotations

from collections.abc import Sequence
from typing import BinaryIO

import structlog

from application.ports.blob_storage import BlobStoragePrimitives, MetadataPrimitives
from application.services.concurrency import run_all
from application.services.directory_browser import DirectoryBrowser, ListPage
from domain.exceptions import BlobNotFoundError, UnsupportedOperationError
from domain.services import storage_path
from domain.services.validation import (
    check_blob_full_path,
    check_blob_full_paths,
    check_blob_prefix,
    check_source_stream,
)
from domain.value_objects.blob import Blob
from domain.value_objects.list_options import ListOptions

logger = structlog.get_logger()


class GenericBlobStorage:
    """Implements the full ``BlobStorage`` surface on top of backend primitives.

    Validation, path normalization, recursion, result caps and multi-path
    fan-out live here, so a backend only has to provide single-path hooks.
    Multi-path operations run concurrently and fail as a whole on the first
    backend error, which cancels the calls still in flight.
    """

    def __init__(self, primitives: BlobStoragePrimitives) -> None:
        if primitives is None:
            msg = "primitives cannot be None"
            raise ValueError(msg)
        self.primitives = primitives

    async def list(self, options: ListOptions | None = None) -> list[Blob]:
        options = ListOptions() if options is None else options.clone()
        check_blob_prefix(options.file_prefix)

        async def list_page(folder_path: str, _page_token: str | None) -> ListPage:
            return ListPage(blobs=await self.primitives.list_at(folder_path, options))

        result = await DirectoryBrowser(list_page).browse(options)

        if options.max_results is not None and len(result) > options.max_results:
            result = result[: options.max_results]
        return result

    async def open_read(self, full_path: str) -> BinaryIO | None:
        check_blob_full_path(full_path)
        return await self.primitives.open_read(storage_path.normalize(full_path))

    async def write(self, full_path: str, source: BinaryIO | None, append: bool = False) -> None:
        check_blob_full_path(full_path)
        check_source_stream(source)
        await self.primitives.write(storage_path.normalize(full_path), source, append)

    async def exists(self, full_paths: Sequence[str]) -> list[bool]:
        check_blob_full_paths(full_paths)
        return await run_all(self.primitives.exists_single(storage_path.normalize(p)) for p in full_paths)

    async def get_blobs(self, full_paths: Sequence[str]) -> list[Blob | None]:
        check_blob_full_paths(full_paths)
        return await run_all(self.primitives.get_blob(storage_path.normalize(p)) for p in full_paths)

    async def set_blobs(self, blobs: Sequence[Blob]) -> None:
        if blobs is None:
            msg = "blobs cannot be None"
            raise ValueError(msg)
        if not isinstance(self.primitives, MetadataPrimitives):
            msg = f"{type(self.primitives).__name__} cannot store blob metadata"
            raise UnsupportedOperationError(msg)
        await run_all(self.primitives.set_blob(b) for b in blobs)

    async def delete(self, full_paths: Sequence[str]) -> None:
        check_blob_full_paths(full_paths)
        await run_all(self._delete_one(storage_path.normalize(p)) for p in full_paths)

    async def _delete_one(self, full_path: str) -> None:
        try:
            await self.primitives.delete_single(full_path)
        except BlobNotFoundError:
            # Not a single object; may still be a folder holding objects.
            await self._delete_children(full_path)

    async def _delete_children(self, folder_path: str) -> None:
        try:
            children = await self.list(ListOptions(folder_path=folder_path, recurse=True))
        except BlobNotFoundError:
            children = []

        files = [c for c in children if c.is_file]
        if not files:
            logger.debug("blob_already_deleted", full_path=folder_path)
            return

        logger.info("deleting_folder_contents", folder_path=folder_path, count=len(files))
        await run_all(self._delete_child(f.full_path) for f in files)

    async def _delete_child(self, full_path: str) -> None:
        try:
            await self.primitives.delete_single(full_path)
        except BlobNotFoundError:
            logger.debug("blob_vanished_during_delete", full_path=full_path)

    async def close(self) -> None:
        close = getattr(self.primitives, "close", None)
        if close is not None:
            await close()
