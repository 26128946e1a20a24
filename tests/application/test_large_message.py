"""Tests for large message offloading."""

from __future__ import annotations

import io

import pytest

from application.services import blob_storage_extensions as blobs
from application.services.generic_blob_storage import GenericBlobStorage
from application.services.large_message import LargeMessageMessenger, LargeMessageReceiver
from domain.exceptions import UnsupportedOperationError
from domain.value_objects.list_options import ListOptions
from domain.value_objects.queue_message import LARGE_MESSAGE_CONTENT_HEADER, QueueMessage
from infrastructure.messaging.in_memory_messenger import InMemoryMessenger
from tests.mocks import MockMessageReceiver


class FailingStorage(GenericBlobStorage):
    async def write(self, full_path, source, append=False) -> None:
        msg = "offload storage unavailable"
        raise OSError(msg)


class FailingPathStorage(GenericBlobStorage):
    """Storage rejecting writes to paths containing ``bad``."""

    async def write(self, full_path, source, append=False) -> None:
        if "bad" in full_path:
            msg = "offload storage unavailable"
            raise OSError(msg)
        await super().write(full_path, source, append)


class TestLargeMessageMessenger:
    """Test LargeMessageMessenger."""

    @pytest.mark.asyncio
    async def test_large_content_is_offloaded(
        self,
        messenger: InMemoryMessenger,
        storage: GenericBlobStorage,
    ) -> None:
        """Test large content is offloaded."""
        large = LargeMessageMessenger(messenger, storage, min_size_large=100)
        payload = b"x" * 200

        await large.send("q", [QueueMessage(content=payload)])

        (transmitted,) = await messenger.peek("q")
        assert transmitted.content is None
        blob_path = transmitted.properties[LARGE_MESSAGE_CONTENT_HEADER]
        assert blob_path.startswith("/message/")
        assert await blobs.read_bytes(storage, blob_path) == payload

    @pytest.mark.asyncio
    async def test_small_content_is_sent_inline(
        self,
        messenger: InMemoryMessenger,
        storage: GenericBlobStorage,
    ) -> None:
        """Test small content is sent inline."""
        large = LargeMessageMessenger(messenger, storage, min_size_large=100)

        await large.send("q", [QueueMessage(content=b"x" * 100)])

        (transmitted,) = await messenger.peek("q")
        assert transmitted.content == b"x" * 100
        assert LARGE_MESSAGE_CONTENT_HEADER not in transmitted.properties
        assert await storage.list() == []

    @pytest.mark.asyncio
    async def test_custom_blob_path_generator(
        self,
        messenger: InMemoryMessenger,
        storage: GenericBlobStorage,
    ) -> None:
        """Test custom blob path generator."""
        large = LargeMessageMessenger(
            messenger,
            storage,
            min_size_large=1,
            blob_path_generator=lambda m: f"offload/{m.id}",
        )

        await large.send("q", [QueueMessage(content=b"abc", id="m1")])

        (transmitted,) = await messenger.peek("q")
        assert transmitted.properties[LARGE_MESSAGE_CONTENT_HEADER] == "offload/m1"
        assert await blobs.read_bytes(storage, "/offload/m1") == b"abc"

    @pytest.mark.asyncio
    async def test_failed_offload_sends_nothing(self, messenger: InMemoryMessenger, in_memory_store) -> None:
        """Test failed offload sends nothing."""
        large = LargeMessageMessenger(messenger, FailingStorage(in_memory_store), min_size_large=10)
        message = QueueMessage(content=b"x" * 50)

        with pytest.raises(OSError, match="unavailable"):
            await large.send("q", [message])

        assert await messenger.get_message_count("q") == 0
        assert message.content == b"x" * 50
        assert LARGE_MESSAGE_CONTENT_HEADER not in message.properties

    @pytest.mark.asyncio
    async def test_failed_offload_leaves_earlier_messages_untouched(
        self,
        messenger: InMemoryMessenger,
        in_memory_store,
    ) -> None:
        """Test that a later offload failure rolls back payloads already stored."""
        storage = FailingPathStorage(in_memory_store)
        large = LargeMessageMessenger(
            messenger,
            storage,
            min_size_large=10,
            blob_path_generator=lambda m: f"/message/{m.id}",
        )
        first = QueueMessage(content=b"a" * 50, id="good")
        second = QueueMessage(content=b"b" * 50, id="bad")

        with pytest.raises(OSError, match="unavailable"):
            await large.send("q", [first, second])

        assert await messenger.get_message_count("q") == 0
        assert first.content == b"a" * 50
        assert LARGE_MESSAGE_CONTENT_HEADER not in first.properties
        assert await storage.exists(["/message/good"]) == [False]

    @pytest.mark.asyncio
    async def test_receive_rehydrates_and_delete_removes_blob(
        self,
        messenger: InMemoryMessenger,
        storage: GenericBlobStorage,
    ) -> None:
        """Test receive rehydrates and delete removes blob."""
        large = LargeMessageMessenger(messenger, storage, min_size_large=100)
        await large.send("q", [QueueMessage(content=b"y" * 200)])

        (received,) = await large.receive("q")
        assert received.content == b"y" * 200

        await large.delete("q", [received])

        assert await messenger.get_message_count("q") == 0
        assert LARGE_MESSAGE_CONTENT_HEADER not in received.properties
        assert await blobs.list_files(storage, ListOptions(recurse=True)) == []

    @pytest.mark.asyncio
    async def test_peek_rehydrates(self, messenger: InMemoryMessenger, storage: GenericBlobStorage) -> None:
        """Test peek rehydrates."""
        large = LargeMessageMessenger(messenger, storage, min_size_large=1)
        await large.send("q", [QueueMessage.from_text("hello")])

        (peeked,) = await large.peek("q")

        assert peeked.string_content == "hello"

    @pytest.mark.asyncio
    async def test_channel_management_delegates(
        self,
        messenger: InMemoryMessenger,
        storage: GenericBlobStorage,
    ) -> None:
        """Test channel management delegates."""
        large = LargeMessageMessenger(messenger, storage, min_size_large=1)

        await large.create_channels(["a", "b"])
        assert sorted(await large.list_channels()) == ["a", "b"]
        await large.delete_channels(["a"])
        assert await large.list_channels() == ["b"]
        assert await large.get_message_count("b") == 0

    def test_requires_parent_and_storage(self, messenger: InMemoryMessenger, storage: GenericBlobStorage) -> None:
        """Test requires parent and storage."""
        with pytest.raises(ValueError, match="parent"):
            LargeMessageMessenger(None, storage, 1)
        with pytest.raises(ValueError, match="offload storage"):
            LargeMessageMessenger(messenger, None, 1)


class TestLargeMessageReceiver:
    """Test LargeMessageReceiver."""

    @pytest.mark.asyncio
    async def test_pump_rehydrates_before_handler_and_confirm_deletes_blob(
        self,
        messenger: InMemoryMessenger,
        storage: GenericBlobStorage,
    ) -> None:
        """Test pump rehydrates before handler and confirm deletes blob."""
        large = LargeMessageMessenger(messenger, storage, min_size_large=100)
        await large.send("q", [QueueMessage(content=b"z" * 200)])
        (transmitted,) = await messenger.receive("q")
        assert transmitted.content is None

        parent = MockMessageReceiver()
        receiver = LargeMessageReceiver(parent, storage)
        seen: list[bytes] = []

        async def handler(messages: list[QueueMessage]) -> None:
            seen.extend(m.content for m in messages)
            await receiver.confirm_messages(messages)

        await receiver.start_message_pump(handler, max_batch_size=5)
        await parent.deliver([transmitted])

        assert seen == [b"z" * 200]
        assert parent.max_batch_size == 5
        assert parent.confirmed == [transmitted]
        assert LARGE_MESSAGE_CONTENT_HEADER not in transmitted.properties
        assert await blobs.list_files(storage, ListOptions(recurse=True)) == []

    @pytest.mark.asyncio
    async def test_dead_letter_deletes_blob(self, storage: GenericBlobStorage) -> None:
        """Test dead letter deletes blob."""
        await storage.write("/message/1", io.BytesIO(b"payload"))
        parent = MockMessageReceiver()
        receiver = LargeMessageReceiver(parent, storage)
        message = QueueMessage(id="1", properties={LARGE_MESSAGE_CONTENT_HEADER: "/message/1"})

        await receiver.dead_letter(message, "poison", "cannot parse")

        assert parent.dead_lettered == [(message, "poison", "cannot parse")]
        assert await storage.exists(["/message/1"]) == [False]

    @pytest.mark.asyncio
    async def test_inline_messages_untouched(self, storage: GenericBlobStorage) -> None:
        """Test inline messages untouched."""
        parent = MockMessageReceiver()
        receiver = LargeMessageReceiver(parent, storage)
        seen: list[QueueMessage] = []

        async def handler(messages: list[QueueMessage]) -> None:
            seen.extend(messages)

        await receiver.start_message_pump(handler)
        await parent.deliver([QueueMessage.from_text("inline")])
        await receiver.confirm_messages(seen)

        assert seen[0].string_content == "inline"
        assert parent.confirmed == seen

    @pytest.mark.asyncio
    async def test_peek_is_unsupported(self, storage: GenericBlobStorage) -> None:
        """Test peek is unsupported."""
        receiver = LargeMessageReceiver(MockMessageReceiver(), storage)

        with pytest.raises(UnsupportedOperationError):
            await receiver.peek_messages(1)

    @pytest.mark.asyncio
    async def test_close_delegates(self, storage: GenericBlobStorage) -> None:
        """Test close delegates."""
        parent = MockMessageReceiver()
        await LargeMessageReceiver(parent, storage).close()
        assert parent.closed

    def test_requires_parent_and_storage(self, storage: GenericBlobStorage) -> None:
        """Test requires parent and storage."""
        with pytest.raises(ValueError, match="parent"):
            LargeMessageReceiver(None, storage)
        with pytest.raises(ValueError, match="offload storage"):
            LargeMessageReceiver(MockMessageReceiver(), None)
