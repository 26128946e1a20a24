"""Tests for the in-memory store primitives."""

from __future__ import annotations

import io

import pytest

from application.services.generic_blob_storage import GenericBlobStorage
from domain.exceptions import BlobNotFoundError
from domain.value_objects.blob import Blob, BlobItemKind
from domain.value_objects.list_options import ListOptions
from infrastructure.blob_stores.in_memory_blob_store import InMemoryBlobStore


class TestInMemoryBlobStore:
    """Test InMemoryBlobStore."""

    @pytest.mark.asyncio
    async def test_write_sets_attributes(self, in_memory_store: InMemoryBlobStore) -> None:
        """Test write sets attributes."""
        await in_memory_store.write("/a/b.txt", io.BytesIO(b"hello"), append=False)

        blob = await in_memory_store.get_blob("/a/b.txt")

        assert blob.size == 5
        assert blob.md5 == "5d41402abc4b2a76b9719d911017c592"
        assert blob.last_modification_time is not None

    @pytest.mark.asyncio
    async def test_list_at_implies_folders(self, in_memory_store: InMemoryBlobStore) -> None:
        """Test list at implies folders."""
        for path in ["/x.txt", "/d/one", "/d/two", "/d/sub/three"]:
            await in_memory_store.write(path, io.BytesIO(b"."), append=False)

        root = await in_memory_store.list_at("/", ListOptions())
        inner = await in_memory_store.list_at("/d", ListOptions())

        assert {(b.full_path, b.kind) for b in root} == {
            ("/x.txt", BlobItemKind.FILE),
            ("/d", BlobItemKind.FOLDER),
        }
        assert {b.full_path for b in inner} == {"/d/one", "/d/two", "/d/sub"}

    @pytest.mark.asyncio
    async def test_delete_single_missing_raises(self, in_memory_store: InMemoryBlobStore) -> None:
        """Test delete single missing raises."""
        with pytest.raises(BlobNotFoundError):
            await in_memory_store.delete_single("/nope")

    @pytest.mark.asyncio
    async def test_get_blob_returns_a_copy(self, in_memory_store: InMemoryBlobStore) -> None:
        """Test get blob returns a copy."""
        await in_memory_store.write("/a", io.BytesIO(b"."), append=False)

        blob = await in_memory_store.get_blob("/a")
        blob.metadata["k"] = "v"

        assert (await in_memory_store.get_blob("/a")).metadata == {}

    @pytest.mark.asyncio
    async def test_metadata_survives_overwrite(self, storage: GenericBlobStorage) -> None:
        """Test metadata survives overwrite."""
        await storage.write("/a", io.BytesIO(b"1"))
        await storage.set_blobs([Blob.from_path("/a", metadata={"owner": "ops"})])
        await storage.write("/a", io.BytesIO(b"22"))

        (blob,) = await storage.get_blobs(["/a"])

        assert blob.metadata == {"owner": "ops"}
        assert blob.size == 2

    @pytest.mark.asyncio
    async def test_set_blobs_ignores_missing(self, storage: GenericBlobStorage) -> None:
        """Test set blobs ignores missing."""
        await storage.set_blobs([Blob.from_path("/ghost", metadata={"a": "b"})])
        assert await storage.get_blobs(["/ghost"]) == [None]

    @pytest.mark.asyncio
    async def test_folder_delete_through_generic_storage(self, storage: GenericBlobStorage) -> None:
        """Test folder delete through generic storage."""
        for path in ["/f/a", "/f/g/b", "/fx"]:
            await storage.write(path, io.BytesIO(b"."))

        await storage.delete(["/f"])

        assert await storage.exists(["/f/a", "/f/g/b", "/fx"]) == [False, False, True]
        assert [b.full_path for b in await storage.list(ListOptions(recurse=True))] == ["/fx"]
