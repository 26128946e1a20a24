"""Storage path rules shared by every blob store.

A normalized path always starts with ``/``, uses ``/`` as the only separator,
never contains empty segments and never ends with a separator (except the
root folder itself, which is ``/``).
"""

from __future__ import annotations

from collections.abc import Iterable

PATH_SEPARATOR = "/"
ROOT_FOLDER_PATH = "/"


def normalize(path: str | None) -> str:
    """Return the canonical form of ``path``.

    Raises:
        ValueError: If ``path`` is None

    """
    if path is None:
        msg = "path cannot be None"
        raise ValueError(msg)
    return PATH_SEPARATOR + PATH_SEPARATOR.join(split(path))


def normalize_part(part: str | None) -> str:
    if part is None:
        msg = "path part cannot be None"
        raise ValueError(msg)
    return part.strip(PATH_SEPARATOR)


def split(path: str | None) -> list[str]:
    """Split a path into its non-empty segments."""
    if path is None:
        return []
    return [p for p in path.split(PATH_SEPARATOR) if p]


def is_root_path(path: str | None) -> bool:
    return path is None or not split(path)


def combine(*parts: str | Iterable[str] | None) -> str:
    """Join path segments with single separators.

    Accepts either positional segments or a single iterable of segments.
    ``None`` segments are skipped.
    """
    if len(parts) == 1 and parts[0] is not None and not isinstance(parts[0], str):
        parts = tuple(parts[0])
    segments: list[str] = []
    for part in parts:
        if part is None:
            continue
        segments.extend(split(part))
    return PATH_SEPARATOR + PATH_SEPARATOR.join(segments)


def get_parent(path: str) -> str | None:
    """Return the parent folder of ``path``, or None for the root folder."""
    segments = split(normalize(path))
    if not segments:
        return None
    return PATH_SEPARATOR + PATH_SEPARATOR.join(segments[:-1])


def get_name(path: str) -> str:
    """Return the last segment of ``path`` (empty for the root folder)."""
    segments = split(normalize(path))
    return segments[-1] if segments else ""


def compare_path(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return a is b
    return normalize(a) == normalize(b)


def is_descendant(path: str, folder_path: str) -> bool:
    """True when ``path`` lies anywhere below ``folder_path``."""
    folder = normalize(folder_path)
    candidate = normalize(path)
    if is_root_path(folder):
        return not is_root_path(candidate)
    return candidate.startswith(folder + PATH_SEPARATOR)
