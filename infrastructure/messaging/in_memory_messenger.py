from __future__ import annotations

import datetime
import uuid
from collections import deque
from collections.abc import Sequence
from typing import ClassVar

import structlog

from domain.value_objects.queue_message import QueueMessage

logger = structlog.get_logger()

DEFAULT_VISIBILITY = datetime.timedelta(seconds=30)


class InMemoryMessenger:
    """Process local messenger with visibility timeouts.

    Received messages are hidden for the visibility window and come back
    with an increased ``dequeue_count`` unless deleted before it expires.
    Callers always get copies, never the stored messages.
    """

    _instances: ClassVar[dict[str, InMemoryMessenger]] = {}

    def __init__(self, default_visibility: datetime.timedelta = DEFAULT_VISIBILITY) -> None:
        self.default_visibility = default_visibility
        self._channels: dict[str, deque[QueueMessage]] = {}

    @classmethod
    def create_or_get(cls, name: str) -> InMemoryMessenger:
        """Return the process wide instance registered under ``name``."""
        if name not in cls._instances:
            cls._instances[name] = cls()
        return cls._instances[name]

    def _channel(self, channel_name: str) -> deque[QueueMessage]:
        if channel_name is None:
            msg = "channel name cannot be None"
            raise ValueError(msg)
        return self._channels.setdefault(channel_name, deque())

    async def create_channels(self, channel_names: Sequence[str]) -> None:
        for name in channel_names:
            self._channel(name)

    async def list_channels(self) -> list[str]:
        return list(self._channels)

    async def delete_channels(self, channel_names: Sequence[str]) -> None:
        if channel_names is None:
            msg = "channel names cannot be None"
            raise ValueError(msg)
        for name in channel_names:
            self._channels.pop(name, None)

    async def get_message_count(self, channel_name: str) -> int:
        return len(self._channels.get(channel_name, ()))

    async def send(self, channel_name: str, messages: Sequence[QueueMessage]) -> None:
        if messages is None:
            msg = "messages cannot be None"
            raise ValueError(msg)
        channel = self._channel(channel_name)
        for message in messages:
            if message is None:
                msg = "message cannot be None"
                raise ValueError(msg)
            stored = message.clone()
            stored.id = stored.id or str(uuid.uuid4())
            stored.dequeue_count = 0
            stored.next_visible_time = None
            channel.append(stored)

    async def receive(
        self,
        channel_name: str,
        count: int = 100,
        visibility: datetime.timedelta | None = None,
    ) -> list[QueueMessage]:
        now = _utcnow()
        hidden_until = now + (visibility or self.default_visibility)

        result: list[QueueMessage] = []
        for message in self._visible(channel_name, now):
            if len(result) >= count:
                break
            message.dequeue_count += 1
            message.next_visible_time = hidden_until
            result.append(message.clone())
        return result

    async def peek(self, channel_name: str, count: int = 100) -> list[QueueMessage]:
        visible = self._visible(channel_name, _utcnow())
        return [m.clone() for m in visible[:count]]

    def _visible(self, channel_name: str, now: datetime.datetime) -> list[QueueMessage]:
        return [
            m
            for m in self._channels.get(channel_name, ())
            if m.next_visible_time is None or m.next_visible_time <= now
        ]

    async def delete(self, channel_name: str, messages: Sequence[QueueMessage]) -> None:
        channel = self._channels.get(channel_name)
        if not channel or not messages:
            return
        ids = {m.id for m in messages}
        remaining = [m for m in channel if m.id not in ids]
        logger.debug("in_memory_messages_deleted", channel=channel_name, count=len(channel) - len(remaining))
        channel.clear()
        channel.extend(remaining)

    async def close(self) -> None:
        return


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)
