"""Convenience helpers usable with any ``BlobStorage`` implementation."""

from __future__ import annotations

import io

import structlog

from application.ports.blob_storage import BlobStorage
from domain.exceptions import BlobNotFoundError
from domain.services.validation import check_blob_full_path
from domain.value_objects.blob import Blob, BlobItemKind
from domain.value_objects.list_options import ListOptions

logger = structlog.get_logger()


async def read_bytes(storage: BlobStorage, full_path: str) -> bytes | None:
    """Read a whole blob into memory, None when it does not exist."""
    stream = await storage.open_read(full_path)
    if stream is None:
        return None
    try:
        return stream.read()
    finally:
        stream.close()


async def read_text(storage: BlobStorage, full_path: str, encoding: str = "utf-8") -> str | None:
    data = await read_bytes(storage, full_path)
    return None if data is None else data.decode(encoding)


async def write_bytes(storage: BlobStorage, full_path: str, data: bytes, append: bool = False) -> None:
    if data is None:
        msg = "data cannot be None"
        raise ValueError(msg)
    await storage.write(full_path, io.BytesIO(data), append=append)


async def write_text(
    storage: BlobStorage,
    full_path: str,
    text: str,
    encoding: str = "utf-8",
    append: bool = False,
) -> None:
    if text is None:
        msg = "text cannot be None"
        raise ValueError(msg)
    await write_bytes(storage, full_path, text.encode(encoding), append=append)


async def exists_one(storage: BlobStorage, full_path: str) -> bool:
    check_blob_full_path(full_path)
    (result,) = await storage.exists([full_path])
    return result


async def delete_one(storage: BlobStorage, full_path: str) -> None:
    check_blob_full_path(full_path)
    await storage.delete([full_path])


async def get_blob(storage: BlobStorage, full_path: str) -> Blob | None:
    check_blob_full_path(full_path)
    (result,) = await storage.get_blobs([full_path])
    return result


async def list_files(storage: BlobStorage, options: ListOptions | None = None) -> list[Blob]:
    return [b for b in await storage.list(options) if b.kind == BlobItemKind.FILE]


async def list_folders(storage: BlobStorage, options: ListOptions | None = None) -> list[Blob]:
    return [b for b in await storage.list(options) if b.kind == BlobItemKind.FOLDER]


async def copy_to(
    storage: BlobStorage,
    full_path: str,
    target_storage: BlobStorage,
    target_full_path: str | None = None,
) -> bool:
    """Copy one blob, possibly into another storage.

    Returns:
        False when the source blob does not exist

    """
    stream = await storage.open_read(full_path)
    if stream is None:
        return False
    try:
        await target_storage.write(target_full_path or full_path, stream)
    finally:
        stream.close()
    return True


async def rename(storage: BlobStorage, old_full_path: str, new_full_path: str) -> None:
    """Move a blob within one storage by copying it and deleting the original.

    Raises:
        BlobNotFoundError: If ``old_full_path`` does not exist

    """
    if not await copy_to(storage, old_full_path, storage, new_full_path):
        raise BlobNotFoundError(old_full_path)
    await storage.delete([old_full_path])
    logger.debug("blob_renamed", old_full_path=old_full_path, new_full_path=new_full_path)
