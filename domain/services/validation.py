"""Generic argument checks applied by every store before touching a backend."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from domain.exceptions import ValidationError
from domain.services.storage_path import PATH_SEPARATOR


def check_blob_prefix(prefix: str | None) -> None:
    """File prefixes filter names inside one folder, so they cannot hold separators."""
    if prefix is None:
        return
    if PATH_SEPARATOR in prefix:
        msg = f"blob prefix '{prefix}' cannot contain '{PATH_SEPARATOR}'"
        raise ValidationError(msg)


def check_blob_full_path(full_path: str | None) -> None:
    if full_path is None:
        msg = "blob full path cannot be None"
        raise ValidationError(msg)


def check_blob_full_paths(full_paths: Iterable[str | None] | None) -> None:
    if full_paths is None:
        msg = "blob full paths cannot be None"
        raise ValidationError(msg)
    for full_path in full_paths:
        check_blob_full_path(full_path)


def check_source_stream(stream: Any) -> None:
    if stream is None:
        msg = "source stream cannot be None"
        raise ValidationError(msg)
    if not hasattr(stream, "read"):
        msg = "source stream must be readable"
        raise ValidationError(msg)
