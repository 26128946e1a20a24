from __future__ import annotations

import datetime
import struct
from dataclasses import dataclass, field

LARGE_MESSAGE_CONTENT_HEADER = "x-sn-large"
"""Reserved property holding the blob path of offloaded message content."""

_BINARY_FORMAT_VERSION = 1


@dataclass
class QueueMessage:
    """One unit of messaging.

    ``content`` is the raw payload; ``string_content`` is its UTF-8 view.
    Receivers may mutate a message in place, e.g. to rehydrate offloaded
    content before handing it to user code.
    """

    content: bytes | None = None
    id: str | None = None
    dequeue_count: int = 0
    next_visible_time: datetime.datetime | None = None
    properties: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str, message_id: str | None = None) -> QueueMessage:
        if text is None:
            msg = "text cannot be None"
            raise ValueError(msg)
        message = cls(id=message_id)
        message.string_content = text
        return message

    @property
    def string_content(self) -> str | None:
        return None if self.content is None else self.content.decode("utf-8")

    @string_content.setter
    def string_content(self, value: str | None) -> None:
        self.content = value.encode("utf-8") if value else None

    @property
    def content_length(self) -> int:
        return 0 if self.content is None else len(self.content)

    def clone(self) -> QueueMessage:
        return QueueMessage(
            content=self.content,
            id=self.id,
            dequeue_count=self.dequeue_count,
            next_visible_time=self.next_visible_time,
            properties=dict(self.properties),
        )

    def to_bytes(self) -> bytes:
        """Compact versioned binary form, used to persist messages."""
        out = bytearray()
        out += struct.pack("<B", _BINARY_FORMAT_VERSION)
        _write_optional_str(out, self.id)
        out += struct.pack("<i", self.dequeue_count)
        content = self.content or b""
        out += struct.pack("<i", len(content))
        out += content
        out += struct.pack("<i", len(self.properties))
        for key, value in self.properties.items():
            _write_str(out, key)
            _write_optional_str(out, value)
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> QueueMessage:
        reader = _Reader(data)
        version = reader.unpack("<B")
        if version != _BINARY_FORMAT_VERSION:
            msg = f"message format version {version} is not supported"
            raise ValueError(msg)

        message_id = reader.read_optional_str()
        dequeue_count = reader.unpack("<i")
        content_length = reader.unpack("<i")
        content = reader.read(content_length) if content_length else None

        properties: dict[str, str] = {}
        for _ in range(reader.unpack("<i")):
            key = reader.read_str()
            properties[key] = reader.read_optional_str()

        return cls(
            content=content,
            id=message_id,
            dequeue_count=dequeue_count,
            properties=properties,
        )


def _write_str(out: bytearray, value: str) -> None:
    raw = value.encode("utf-8")
    out += struct.pack("<i", len(raw))
    out += raw


def _write_optional_str(out: bytearray, value: str | None) -> None:
    out += struct.pack("<?", value is not None)
    if value is not None:
        _write_str(out, value)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def read(self, size: int) -> bytes:
        if self._offset + size > len(self._data):
            msg = "message data is truncated"
            raise ValueError(msg)
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def unpack(self, fmt: str):
        (value,) = struct.unpack(fmt, self.read(struct.calcsize(fmt)))
        return value

    def read_str(self) -> str:
        return self.read(self.unpack("<i")).decode("utf-8")

    def read_optional_str(self) -> str | None:
        return self.read_str() if self.unpack("<?") else None
