from __future__ import annotations

import asyncio
import datetime
import itertools
import shutil
from collections.abc import Sequence
from pathlib import Path

import structlog

from domain.value_objects.queue_message import QueueMessage

logger = structlog.get_logger()

FILE_EXTENSION = ".snm"


class LocalDiskMessenger:
    """Messenger keeping each channel as a directory of message files.

    File names sort in send order, so the oldest message is always the first
    file. ``receive`` consumes the files it returns; there is no visibility
    window on disk.
    """

    def __init__(self, directory_path: str | Path) -> None:
        if directory_path is None:
            msg = "directory path cannot be None"
            raise ValueError(msg)
        self.root = Path(directory_path)
        self._sequence = itertools.count()

    def _channel_path(self, channel_name: str) -> Path:
        if not channel_name:
            msg = "channel name cannot be empty"
            raise ValueError(msg)
        return self.root / channel_name

    def _message_files(self, channel_name: str) -> list[Path]:
        path = self._channel_path(channel_name)
        if not path.is_dir():
            return []
        return sorted(path.glob(f"*{FILE_EXTENSION}"), key=lambda p: p.name)

    def _generate_file_name(self) -> str:
        now = datetime.datetime.now(datetime.UTC)
        return f"{now:%Y-%m-%d-%H-%M-%S-%f}-{next(self._sequence):08d}{FILE_EXTENSION}"

    async def create_channels(self, channel_names: Sequence[str]) -> None:
        for name in channel_names:
            self._channel_path(name).mkdir(parents=True, exist_ok=True)

    async def list_channels(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_dir())

    async def delete_channels(self, channel_names: Sequence[str]) -> None:
        if channel_names is None:
            msg = "channel names cannot be None"
            raise ValueError(msg)
        for name in channel_names:
            path = self._channel_path(name)
            if path.is_dir():
                await asyncio.to_thread(shutil.rmtree, path)

    async def get_message_count(self, channel_name: str) -> int:
        return len(self._message_files(channel_name))

    async def send(self, channel_name: str, messages: Sequence[QueueMessage]) -> None:
        if messages is None:
            msg = "messages cannot be None"
            raise ValueError(msg)
        channel_path = self._channel_path(channel_name)
        channel_path.mkdir(parents=True, exist_ok=True)

        for message in messages:
            if message is None:
                msg = "message cannot be None"
                raise ValueError(msg)
            file_path = channel_path / self._generate_file_name()
            await asyncio.to_thread(file_path.write_bytes, message.to_bytes())

    async def receive(
        self,
        channel_name: str,
        count: int = 100,
        visibility: datetime.timedelta | None = None,
    ) -> list[QueueMessage]:
        result: list[QueueMessage] = []
        for file_path in self._message_files(channel_name):
            if len(result) >= count:
                break
            try:
                message = await asyncio.to_thread(_read_message, file_path)
                file_path.unlink()
            except FileNotFoundError:
                # taken by another consumer
                continue
            message.dequeue_count += 1
            result.append(message)
        return result

    async def peek(self, channel_name: str, count: int = 100) -> list[QueueMessage]:
        result: list[QueueMessage] = []
        for file_path in self._message_files(channel_name)[:count]:
            try:
                result.append(await asyncio.to_thread(_read_message, file_path))
            except FileNotFoundError:
                continue
        return result

    async def delete(self, channel_name: str, messages: Sequence[QueueMessage]) -> None:
        channel_path = self._channel_path(channel_name)
        for message in messages or ():
            if message.id:
                (channel_path / f"{message.id}{FILE_EXTENSION}").unlink(missing_ok=True)

    async def close(self) -> None:
        logger.debug("local_disk_messenger_closed", root=str(self.root))


def _read_message(file_path: Path) -> QueueMessage:
    message = QueueMessage.from_bytes(file_path.read_bytes())
    message.id = file_path.stem
    return message
