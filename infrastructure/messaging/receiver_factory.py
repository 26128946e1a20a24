from __future__ import annotations

import datetime

from application.ports.blob_storage import BlobStorage
from application.ports.messenger import MessageReceiver, Messenger
from application.services.large_message import LargeMessageReceiver
from application.services.polling_message_receiver import PollingMessageReceiver


class MessageReceiverFactory:
    """Builds channel receivers that poll ``messenger`` and restore offloaded content."""

    def __init__(
        self,
        messenger: Messenger,
        offload_storage: BlobStorage,
        poll_interval: float = 1.0,
        visibility: datetime.timedelta | None = None,
    ) -> None:
        self.messenger = messenger
        self.offload_storage = offload_storage
        self.poll_interval = poll_interval
        self.visibility = visibility

    def create(self, channel_name: str) -> MessageReceiver:
        receiver = PollingMessageReceiver(
            self.messenger,
            channel_name,
            poll_interval=self.poll_interval,
            visibility=self.visibility,
        )
        return LargeMessageReceiver(receiver, self.offload_storage)
