from __future__ import annotations

import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from domain.services import storage_path


class BlobItemKind(str, Enum):
    """Kind of an item returned by a blob store."""

    FILE = "file"
    FOLDER = "folder"


class Blob(BaseModel):
    """Value object describing one storage object or folder.

    The full path is always the combination of ``folder_path`` and ``name``.
    Two blobs are equal when they point to the same full path and have the
    same kind; attributes such as size or metadata do not take part.
    """

    folder_path: str = storage_path.ROOT_FOLDER_PATH
    """Normalized path of the containing folder."""

    name: str
    """Last path segment, unique within the folder."""

    kind: BlobItemKind = BlobItemKind.FILE

    size: int | None = Field(None, ge=0)
    last_modification_time: datetime.datetime | None = None
    md5: str | None = None

    metadata: dict[str, str] = Field(default_factory=dict)
    """User defined metadata."""

    properties: dict[str, str] = Field(default_factory=dict)
    """Provider specific extras."""

    @field_validator("folder_path")
    @classmethod
    def normalize_folder_path(cls, v: str) -> str:
        return storage_path.normalize(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = storage_path.normalize_part(v)
        if not v:
            msg = "blob name cannot be empty"
            raise ValueError(msg)
        if storage_path.PATH_SEPARATOR in v:
            msg = f"blob name '{v}' cannot contain '{storage_path.PATH_SEPARATOR}'"
            raise ValueError(msg)
        return v

    @classmethod
    def from_path(cls, full_path: str, kind: BlobItemKind = BlobItemKind.FILE, **attributes) -> Blob:
        """Create a blob by splitting a full path into folder and name."""
        path = storage_path.normalize(full_path)
        if storage_path.is_root_path(path):
            msg = "the root folder cannot be represented as a blob"
            raise ValueError(msg)
        return cls(
            folder_path=storage_path.get_parent(path),
            name=storage_path.get_name(path),
            kind=kind,
            **attributes,
        )

    @property
    def full_path(self) -> str:
        return storage_path.combine(self.folder_path, self.name)

    @property
    def is_file(self) -> bool:
        return self.kind == BlobItemKind.FILE

    @property
    def is_folder(self) -> bool:
        return self.kind == BlobItemKind.FOLDER

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Blob):
            return NotImplemented
        return self.full_path == other.full_path and self.kind == other.kind

    def __hash__(self) -> int:
        return hash((self.full_path, self.kind))

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.name}@{self.folder_path}"
