"""Recursive folder walker for backends that only list one level at a time."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from application.services.concurrency import run_all
from domain.exceptions import AccessDeniedError, BlobNotFoundError
from domain.services import storage_path
from domain.services.validation import check_blob_prefix
from domain.value_objects.blob import Blob
from domain.value_objects.list_options import ListOptions

logger = structlog.get_logger()

# A branch failing with one of these is treated as empty.
SKIPPABLE_ERRORS: tuple[type[BaseException], ...] = (
    BlobNotFoundError,
    AccessDeniedError,
    FileNotFoundError,
    PermissionError,
)


@dataclass
class ListPage:
    """One page of a single folder level."""

    blobs: list[Blob] = field(default_factory=list)
    next_page_token: str | None = None


PageLister = Callable[[str, str | None], Awaitable[ListPage]]


class DirectoryBrowser:
    """Walks a folder tree through a paginated one-level listing primitive.

    Sibling folders are listed concurrently. All branches share one result
    list and one ``max_results`` budget, so once the budget is spent every
    other branch stops before issuing its next backend call. Which entries
    survive the truncation depends on branch completion order. A branch
    failing with anything other than a skippable error cancels the rest of
    the walk.
    """

    def __init__(self, list_page: PageLister) -> None:
        self._list_page = list_page

    async def browse(self, options: ListOptions) -> list[Blob]:
        check_blob_prefix(options.file_prefix)

        container: list[Blob] = []
        state = _WalkState()
        await self._browse_folder(options.folder_path, options, container, state)
        return container

    async def _browse_folder(
        self,
        folder_path: str,
        options: ListOptions,
        container: list[Blob],
        state: _WalkState,
    ) -> None:
        if state.stopped:
            return

        try:
            batch = await self._list_level(folder_path, state)
        except SKIPPABLE_ERRORS as e:
            logger.warning(
                "directory_branch_skipped",
                folder_path=folder_path,
                error=type(e).__name__,
            )
            return

        if state.stopped:
            return

        matched = [
            b
            for b in batch
            if options.is_match(b) and (options.browse_filter is None or options.browse_filter(b))
        ]
        if options.add(container, matched):
            state.stopped = True
            return

        if options.recurse:
            folders = [b for b in batch if b.is_folder]
            if folders:
                await run_all(
                    self._browse_folder(
                        storage_path.combine(f.folder_path, f.name),
                        options,
                        container,
                        state,
                    )
                    for f in folders
                )

    async def _list_level(self, folder_path: str, state: _WalkState) -> list[Blob]:
        batch: list[Blob] = []
        page_token: str | None = None
        while True:
            page = await self._list_page(folder_path, page_token)
            batch.extend(page.blobs)
            page_token = page.next_page_token
            if not page_token or state.stopped:
                return batch


class _WalkState:
    __slots__ = ("stopped",)

    def __init__(self) -> None:
        self.stopped = False
