from __future__ import annotations

from typing import BinaryIO, Protocol


class TransformSink(Protocol):
    """Reversible byte transformation applied around a blob store.

    Sinks are stacked: the stream a sink returns is handed to the next sink
    as its parent. Sinks must be applied in the same order for reads and
    writes, otherwise content written by a chain cannot be read back.
    """

    def open_read_stream(self, full_path: str, parent: BinaryIO) -> BinaryIO:
        """Wrap ``parent`` so that reads return the untransformed bytes."""
        ...

    def open_write_stream(self, full_path: str, parent: BinaryIO) -> BinaryIO:
        """Wrap ``parent`` so that writes are transformed on their way in.

        Closing the returned stream finalizes the transformation (trailers,
        last cipher block) into ``parent`` and leaves ``parent`` open.
        """
        ...
