from __future__ import annotations

import datetime
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

from domain.value_objects.queue_message import QueueMessage

MessageHandler = Callable[[list[QueueMessage]], Awaitable[None]]
"""Callback invoked by a message pump with one batch of messages."""


class Messenger(Protocol):
    """Channel based messaging backend (queues, topics, folders on disk)."""

    async def create_channels(self, channel_names: Sequence[str]) -> None: ...

    async def list_channels(self) -> list[str]: ...

    async def delete_channels(self, channel_names: Sequence[str]) -> None: ...

    async def get_message_count(self, channel_name: str) -> int: ...

    async def send(self, channel_name: str, messages: Sequence[QueueMessage]) -> None: ...

    async def receive(
        self,
        channel_name: str,
        count: int = 100,
        visibility: datetime.timedelta | None = None,
    ) -> list[QueueMessage]:
        """Receive up to ``count`` messages.

        Received messages stay hidden from other consumers for ``visibility``
        (backend default when omitted) and must be removed with ``delete``.
        """
        ...

    async def peek(self, channel_name: str, count: int = 100) -> list[QueueMessage]:
        """Return up to ``count`` messages without hiding or removing them."""
        ...

    async def delete(self, channel_name: str, messages: Sequence[QueueMessage]) -> None: ...

    async def close(self) -> None: ...


class MessageReceiver(Protocol):
    """Consumer bound to a single channel."""

    async def get_message_count(self) -> int: ...

    async def confirm_messages(self, messages: Sequence[QueueMessage]) -> None:
        """Mark messages as processed so they are never delivered again."""
        ...

    async def dead_letter(self, message: QueueMessage, reason: str, error_description: str) -> None:
        """Move a message that cannot be processed out of the channel."""
        ...

    async def peek_messages(self, max_messages: int) -> list[QueueMessage]: ...

    async def start_message_pump(self, on_messages: MessageHandler, max_batch_size: int = 1) -> None:
        """Start delivering batches to ``on_messages`` in the background and return."""
        ...

    async def keep_alive(
        self,
        message: QueueMessage,
        time_to_live: datetime.timedelta | None = None,
    ) -> None:
        """Extend the lock a consumer holds on ``message``."""
        ...

    async def close(self) -> None: ...
