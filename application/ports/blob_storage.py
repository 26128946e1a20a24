from __future__ import annotations

from collections.abc import Sequence
from typing import BinaryIO, Protocol, runtime_checkable

from domain.value_objects.blob import Blob
from domain.value_objects.list_options import ListOptions


class BlobStorage(Protocol):
    """Public surface shared by every blob store, decorator included.

    Paths are normalized by the implementation, so callers may pass
    ``"a/b"`` or ``"/a/b/"`` interchangeably.
    """

    async def list(self, options: ListOptions | None = None) -> list[Blob]:
        """List files and folders.

        Args:
            options: Listing options, root folder without recursion when omitted

        Returns:
            At most ``options.max_results`` blobs, in no particular order

        Raises:
            ValidationError: If the options are invalid. No backend call is made.

        """
        ...

    async def open_read(self, full_path: str) -> BinaryIO | None:
        """Open a blob for reading, or return None when it does not exist."""
        ...

    async def write(self, full_path: str, source: BinaryIO | None, append: bool = False) -> None:
        """Write ``source`` to ``full_path``, replacing or appending to existing content."""
        ...

    async def delete(self, full_paths: Sequence[str]) -> None:
        """Delete files or whole folders. Missing paths are not an error."""
        ...

    async def exists(self, full_paths: Sequence[str]) -> list[bool]:
        """Check existence, one flag per path in the same order."""
        ...

    async def get_blobs(self, full_paths: Sequence[str]) -> list[Blob | None]:
        """Fetch blob attributes, one entry per path in the same order, None when missing."""
        ...

    async def set_blobs(self, blobs: Sequence[Blob]) -> None:
        """Persist user metadata of existing blobs.

        Raises:
            UnsupportedOperationError: If the backend cannot store metadata

        """
        ...

    async def close(self) -> None: ...


@runtime_checkable
class BlobStoragePrimitives(Protocol):
    """Hooks a concrete backend provides to the generic orchestrator.

    Every path received here is already normalized. ``list_at`` lists one
    folder level only; recursion, filtering and result caps are handled by
    the caller. Backends signal a missing path with ``BlobNotFoundError``
    and a refused one with ``AccessDeniedError``.
    """

    async def list_at(self, folder_path: str, options: ListOptions) -> list[Blob]: ...

    async def get_blob(self, full_path: str) -> Blob | None: ...

    async def delete_single(self, full_path: str) -> None: ...

    async def exists_single(self, full_path: str) -> bool: ...

    async def open_read(self, full_path: str) -> BinaryIO | None: ...

    async def write(self, full_path: str, source: BinaryIO, append: bool) -> None: ...


@runtime_checkable
class MetadataPrimitives(Protocol):
    """Optional hook for backends able to persist user metadata."""

    async def set_blob(self, blob: Blob) -> None: ...
