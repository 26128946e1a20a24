from __future__ import annotations

import asyncio
import datetime
from collections.abc import Sequence

import structlog

from application.ports.messenger import MessageHandler, Messenger
from domain.value_objects.queue_message import QueueMessage

logger = structlog.get_logger()

DEAD_LETTER_SUFFIX = ".deadletter"
DEAD_LETTER_REASON_PROPERTY = "x-deadletter-reason"
DEAD_LETTER_DESCRIPTION_PROPERTY = "x-deadletter-description"


class PollingMessageReceiver:
    """Message receiver for messengers without a native push mechanism.

    The pump runs as a background task polling ``messenger.receive``. When a
    poll returns nothing the task sleeps for ``poll_interval`` seconds.
    Exceptions raised by the handler are logged and the pump keeps going;
    unconfirmed messages become visible again once their visibility window
    expires.
    """

    def __init__(
        self,
        messenger: Messenger,
        channel_name: str,
        poll_interval: float = 1.0,
        visibility: datetime.timedelta | None = None,
    ) -> None:
        if messenger is None:
            msg = "messenger cannot be None"
            raise ValueError(msg)
        if not channel_name:
            msg = "channel name cannot be empty"
            raise ValueError(msg)
        self.messenger = messenger
        self.channel_name = channel_name
        self.poll_interval = poll_interval
        self.visibility = visibility
        self._pump_task: asyncio.Task | None = None

    @property
    def dead_letter_channel_name(self) -> str:
        return self.channel_name + DEAD_LETTER_SUFFIX

    @property
    def is_running(self) -> bool:
        return self._pump_task is not None and not self._pump_task.done()

    async def get_message_count(self) -> int:
        return await self.messenger.get_message_count(self.channel_name)

    async def confirm_messages(self, messages: Sequence[QueueMessage]) -> None:
        await self.messenger.delete(self.channel_name, messages)

    async def dead_letter(self, message: QueueMessage, reason: str, error_description: str) -> None:
        dead = message.clone()
        dead.id = None
        dead.properties[DEAD_LETTER_REASON_PROPERTY] = reason or ""
        dead.properties[DEAD_LETTER_DESCRIPTION_PROPERTY] = error_description or ""

        await self.messenger.send(self.dead_letter_channel_name, [dead])
        await self.messenger.delete(self.channel_name, [message])
        logger.warning(
            "message_dead_lettered",
            channel=self.channel_name,
            message_id=message.id,
            reason=reason,
        )

    async def peek_messages(self, max_messages: int) -> list[QueueMessage]:
        return await self.messenger.peek(self.channel_name, count=max_messages)

    async def keep_alive(
        self,
        message: QueueMessage,
        time_to_live: datetime.timedelta | None = None,
    ) -> None:
        # Polled messengers hold no lock to renew.
        return

    async def start_message_pump(self, on_messages: MessageHandler, max_batch_size: int = 1) -> None:
        if on_messages is None:
            msg = "message handler cannot be None"
            raise ValueError(msg)
        if max_batch_size < 1:
            msg = "max_batch_size must be at least 1"
            raise ValueError(msg)
        if self.is_running:
            msg = f"message pump for '{self.channel_name}' is already running"
            raise RuntimeError(msg)

        self._pump_task = asyncio.create_task(self._pump(on_messages, max_batch_size))
        logger.info("message_pump_started", channel=self.channel_name, max_batch_size=max_batch_size)

    async def _pump(self, on_messages: MessageHandler, max_batch_size: int) -> None:
        while True:
            try:
                messages = await self.messenger.receive(
                    self.channel_name,
                    count=max_batch_size,
                    visibility=self.visibility,
                )
            except Exception:
                logger.exception("message_receive_failed", channel=self.channel_name)
                await asyncio.sleep(self.poll_interval)
                continue

            if not messages:
                await asyncio.sleep(self.poll_interval)
                continue

            try:
                await on_messages(messages)
            except Exception:
                logger.exception(
                    "message_handler_failed",
                    channel=self.channel_name,
                    count=len(messages),
                )

    async def close(self) -> None:
        if self._pump_task is None:
            return
        self._pump_task.cancel()
        try:
            await self._pump_task
        except asyncio.CancelledError:
            pass
        self._pump_task = None
        logger.info("message_pump_stopped", channel=self.channel_name)
