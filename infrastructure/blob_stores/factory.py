from __future__ import annotations

from application.services.generic_blob_storage import GenericBlobStorage
from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore
from infrastructure.blob_stores.in_memory_blob_store import InMemoryBlobStore


def create_in_memory_storage() -> GenericBlobStorage:
    return GenericBlobStorage(InMemoryBlobStore())


def create_fsspec_storage(base_url: str, storage_options: dict | None = None) -> GenericBlobStorage:
    """Create storage rooted at an fsspec URL, e.g. ``file:///var/data`` or ``memory://cache``."""
    return GenericBlobStorage(FsspecBlobStore(base_url, storage_options=storage_options))
