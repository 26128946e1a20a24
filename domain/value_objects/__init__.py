from .blob import Blob, BlobItemKind
from .list_options import ListOptions
from .queue_message import LARGE_MESSAGE_CONTENT_HEADER, QueueMessage

__all__ = [
    "LARGE_MESSAGE_CONTENT_HEADER",
    "Blob",
    "BlobItemKind",
    "ListOptions",
    "QueueMessage",
]
