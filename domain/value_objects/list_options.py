from __future__ import annotations

from collections.abc import Callable, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.services import storage_path
from domain.services.validation import check_blob_prefix
from domain.value_objects.blob import Blob


class ListOptions(BaseModel):
    """Options for a listing operation.

    The same instance is shared by every branch of a recursive listing, so
    ``max_results`` is a global cap across the whole walk.
    """

    model_config = ConfigDict(validate_assignment=True)

    folder_path: str = storage_path.ROOT_FOLDER_PATH
    """Folder to start browsing from."""

    file_prefix: str | None = None
    """Filters file names in every visited folder. Folders are not affected."""

    recurse: bool = False
    max_results: int | None = Field(None, ge=0)
    """Counts files and folders alike."""

    include_attributes: bool = False
    """Ask providers that support it to populate blob metadata."""

    browse_filter: Callable[[Blob], bool] | None = None
    """Client side filter applied before results are accumulated."""

    @field_validator("folder_path", mode="before")
    @classmethod
    def normalize_folder_path(cls, v: str | None) -> str:
        if v is None:
            return storage_path.ROOT_FOLDER_PATH
        return storage_path.normalize(v)

    @field_validator("file_prefix")
    @classmethod
    def validate_file_prefix(cls, v: str | None) -> str | None:
        check_blob_prefix(v)
        return v

    def is_match(self, blob: Blob) -> bool:
        """Check folder membership and the file prefix for ``blob``."""
        if self.recurse:
            in_folder = storage_path.is_descendant(blob.full_path, self.folder_path)
        else:
            in_folder = storage_path.compare_path(blob.folder_path, self.folder_path)
        if not in_folder:
            return False
        return self.file_prefix is None or not blob.is_file or blob.name.startswith(self.file_prefix)

    def add(self, container: list[Blob], batch: Sequence[Blob]) -> bool:
        """Append ``batch`` to ``container`` within the ``max_results`` budget.

        Returns:
            True when the budget is exhausted and listing should stop

        """
        if self.max_results is None or len(container) + len(batch) < self.max_results:
            container.extend(batch)
            return False

        room = max(self.max_results - len(container), 0)
        container.extend(batch[:room])
        return True

    def clone(self) -> ListOptions:
        return self.model_copy()
