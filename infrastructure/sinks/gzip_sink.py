from __future__ import annotations

import gzip
from typing import BinaryIO


class _GzipReader(gzip.GzipFile):
    """Decompressing reader that owns the stream it reads from."""

    def __init__(self, parent: BinaryIO) -> None:
        self._parent = parent
        super().__init__(fileobj=parent, mode="rb")

    def close(self) -> None:
        try:
            super().close()
        finally:
            self._parent.close()


class GZipSink:
    """Compresses blob content with gzip."""

    def __init__(self, compresslevel: int = 9) -> None:
        if not 0 <= compresslevel <= 9:
            msg = f"compresslevel must be between 0 and 9, got {compresslevel}"
            raise ValueError(msg)
        self.compresslevel = compresslevel

    def open_read_stream(self, full_path: str, parent: BinaryIO) -> BinaryIO:
        return _GzipReader(parent)

    def open_write_stream(self, full_path: str, parent: BinaryIO) -> BinaryIO:
        # GzipFile leaves a caller supplied fileobj open on close.
        return gzip.GzipFile(fileobj=parent, mode="wb", compresslevel=self.compresslevel, mtime=0)
