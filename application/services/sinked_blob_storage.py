from __future__ import annotations

import io
import shutil
from collections.abc import Sequence
from typing import BinaryIO

import structlog

from application.ports.blob_storage import BlobStorage
from application.ports.transform_sink import TransformSink
from domain.value_objects.blob import Blob
from domain.value_objects.list_options import ListOptions

logger = structlog.get_logger()

_COPY_CHUNK_SIZE = 1024 * 1024


class SinkedBlobStorage:
    """Blob storage decorator passing content through an ordered list of sinks.

    The first sink is the innermost layer on both paths: on write its output
    is what the inner store receives, on read it is the first to see the
    stored bytes. Reads and writes therefore compose back to the original
    content as long as the same list is used for both.

    Writes are staged fully in memory before reaching the inner store.
    """

    def __init__(self, inner: BlobStorage, sinks: Sequence[TransformSink]) -> None:
        if inner is None:
            msg = "inner storage cannot be None"
            raise ValueError(msg)
        self.inner = inner
        self.sinks = list(sinks or [])

    async def open_read(self, full_path: str) -> BinaryIO | None:
        stream = await self.inner.open_read(full_path)
        if stream is None:
            return None

        for sink in self.sinks:
            stream = sink.open_read_stream(full_path, stream)
        return stream

    async def write(self, full_path: str, source: BinaryIO | None, append: bool = False) -> None:
        if source is None:
            return

        buffer = io.BytesIO()
        try:
            layers: list[BinaryIO] = []
            dest: BinaryIO = buffer
            for sink in self.sinks:
                dest = sink.open_write_stream(full_path, dest)
                layers.append(dest)

            shutil.copyfileobj(source, dest, _COPY_CHUNK_SIZE)

            # Finalize outermost first so each layer flushes into a still open parent.
            for layer in reversed(layers):
                layer.close()

            buffer.seek(0)
            await self.inner.write(full_path, buffer, append=append)
        except Exception:
            logger.exception("sinked_write_failed", full_path=full_path)
            raise
        finally:
            buffer.close()

    async def list(self, options: ListOptions | None = None) -> list[Blob]:
        return await self.inner.list(options)

    async def delete(self, full_paths: Sequence[str]) -> None:
        await self.inner.delete(full_paths)

    async def exists(self, full_paths: Sequence[str]) -> list[bool]:
        return await self.inner.exists(full_paths)

    async def get_blobs(self, full_paths: Sequence[str]) -> list[Blob | None]:
        return await self.inner.get_blobs(full_paths)

    async def set_blobs(self, blobs: Sequence[Blob]) -> None:
        await self.inner.set_blobs(blobs)

    async def close(self) -> None:
        await self.inner.close()
