"""Messaging decorators offloading oversized message content to blob storage.

A message whose content is longer than the configured threshold travels
through the messenger with empty content and the
``LARGE_MESSAGE_CONTENT_HEADER`` property pointing at a blob holding the
payload. Receivers read the blob back before user code sees the message and
delete it once the message is confirmed or dead-lettered.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Callable, Sequence

import structlog

from application.ports.blob_storage import BlobStorage
from application.ports.messenger import MessageHandler, Messenger, MessageReceiver
from application.services import blob_storage_extensions as blobs
from domain.exceptions import BlobNotFoundError, UnsupportedOperationError
from domain.services import storage_path
from domain.value_objects.queue_message import LARGE_MESSAGE_CONTENT_HEADER, QueueMessage

logger = structlog.get_logger()

BlobPathGenerator = Callable[[QueueMessage], str]

OFFLOAD_FOLDER = "message"


def generate_blob_path(message: QueueMessage) -> str:
    return storage_path.combine(OFFLOAD_FOLDER, str(uuid.uuid4()))


async def rehydrate(offload_storage: BlobStorage, messages: Sequence[QueueMessage]) -> None:
    """Replace empty content of offloaded messages with the stored payload."""
    for message in messages:
        blob_path = message.properties.get(LARGE_MESSAGE_CONTENT_HEADER)
        if blob_path is None:
            continue
        content = await blobs.read_bytes(offload_storage, blob_path)
        if content is None:
            raise BlobNotFoundError(blob_path)
        message.content = content


async def release(offload_storage: BlobStorage, messages: Sequence[QueueMessage]) -> None:
    """Delete offloaded payloads and strip the header from ``messages``."""
    for message in messages:
        blob_path = message.properties.pop(LARGE_MESSAGE_CONTENT_HEADER, None)
        if blob_path is None:
            continue
        await blobs.delete_one(offload_storage, blob_path)
        logger.debug("large_message_blob_deleted", message_id=message.id, blob_path=blob_path)


class LargeMessageMessenger:
    """Messenger decorator offloading content longer than ``min_size_large`` bytes."""

    def __init__(
        self,
        parent: Messenger,
        offload_storage: BlobStorage,
        min_size_large: int,
        blob_path_generator: BlobPathGenerator | None = None,
        keep_parent_open: bool = False,
    ) -> None:
        if parent is None:
            msg = "parent messenger cannot be None"
            raise ValueError(msg)
        if offload_storage is None:
            msg = "offload storage cannot be None"
            raise ValueError(msg)
        if min_size_large < 0:
            msg = "min_size_large must be non-negative"
            raise ValueError(msg)

        self.parent = parent
        self.offload_storage = offload_storage
        self.min_size_large = min_size_large
        self.blob_path_generator = blob_path_generator or generate_blob_path
        self.keep_parent_open = keep_parent_open

    async def send(self, channel_name: str, messages: Sequence[QueueMessage]) -> None:
        """Offload oversized content, then send every message through the parent.

        Messages are changed in place, and only once every payload is stored.
        If an offload write fails the payloads already written are deleted, the
        messages are left untouched and nothing is sent. A failing parent send
        leaves the stored payloads behind.
        """
        if channel_name is None:
            msg = "channel name cannot be None"
            raise ValueError(msg)
        if messages is None:
            msg = "messages cannot be None"
            raise ValueError(msg)

        offloaded: list[tuple[QueueMessage, str]] = []
        try:
            for message in messages:
                blob_path = await self._offload(message)
                if blob_path is not None:
                    offloaded.append((message, blob_path))
        except Exception:
            await self._discard([blob_path for _, blob_path in offloaded])
            raise

        for message, blob_path in offloaded:
            logger.info("large_message_offloaded", blob_path=blob_path, size=message.content_length)
            message.properties[LARGE_MESSAGE_CONTENT_HEADER] = blob_path
            message.content = None
        await self.parent.send(channel_name, messages)

    async def _offload(self, message: QueueMessage) -> str | None:
        if message.content_length <= self.min_size_large:
            return None
        blob_path = self.blob_path_generator(message)
        await blobs.write_bytes(self.offload_storage, blob_path, message.content)
        return blob_path

    async def _discard(self, blob_paths: list[str]) -> None:
        if not blob_paths:
            return
        try:
            await self.offload_storage.delete(blob_paths)
        except Exception:
            # the offload error is the one worth surfacing
            logger.exception("large_message_cleanup_failed", blob_paths=blob_paths)

    async def receive(
        self,
        channel_name: str,
        count: int = 100,
        visibility: datetime.timedelta | None = None,
    ) -> list[QueueMessage]:
        messages = await self.parent.receive(channel_name, count=count, visibility=visibility)
        await rehydrate(self.offload_storage, messages)
        return messages

    async def peek(self, channel_name: str, count: int = 100) -> list[QueueMessage]:
        messages = await self.parent.peek(channel_name, count=count)
        await rehydrate(self.offload_storage, messages)
        return messages

    async def delete(self, channel_name: str, messages: Sequence[QueueMessage]) -> None:
        await self.parent.delete(channel_name, messages)
        await release(self.offload_storage, messages)

    async def create_channels(self, channel_names: Sequence[str]) -> None:
        await self.parent.create_channels(channel_names)

    async def list_channels(self) -> list[str]:
        return await self.parent.list_channels()

    async def delete_channels(self, channel_names: Sequence[str]) -> None:
        await self.parent.delete_channels(channel_names)

    async def get_message_count(self, channel_name: str) -> int:
        return await self.parent.get_message_count(channel_name)

    async def close(self) -> None:
        if not self.keep_parent_open:
            await self.parent.close()


class LargeMessageReceiver:
    """Receiver decorator restoring offloaded content and cleaning it up."""

    def __init__(self, parent: MessageReceiver, offload_storage: BlobStorage) -> None:
        if parent is None:
            msg = "parent receiver cannot be None"
            raise ValueError(msg)
        if offload_storage is None:
            msg = "offload storage cannot be None"
            raise ValueError(msg)
        self.parent = parent
        self.offload_storage = offload_storage

    async def confirm_messages(self, messages: Sequence[QueueMessage]) -> None:
        await self.parent.confirm_messages(messages)
        await release(self.offload_storage, messages)

    async def dead_letter(self, message: QueueMessage, reason: str, error_description: str) -> None:
        await self.parent.dead_letter(message, reason, error_description)
        await release(self.offload_storage, [message])

    async def start_message_pump(self, on_messages: MessageHandler, max_batch_size: int = 1) -> None:
        async def rehydrating_handler(messages: list[QueueMessage]) -> None:
            await rehydrate(self.offload_storage, messages)
            await on_messages(messages)

        await self.parent.start_message_pump(rehydrating_handler, max_batch_size=max_batch_size)

    async def peek_messages(self, max_messages: int) -> list[QueueMessage]:
        msg = "peeking is not supported for large message receivers"
        raise UnsupportedOperationError(msg)

    async def keep_alive(
        self,
        message: QueueMessage,
        time_to_live: datetime.timedelta | None = None,
    ) -> None:
        await self.parent.keep_alive(message, time_to_live)

    async def get_message_count(self) -> int:
        return await self.parent.get_message_count()

    async def close(self) -> None:
        await self.parent.close()
