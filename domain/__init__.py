"""Domain layer exports."""

from domain.exceptions import (
    AccessDeniedError,
    BlobNotFoundError,
    DomainError,
    UnsupportedOperationError,
    ValidationError,
)
from domain.value_objects import (
    LARGE_MESSAGE_CONTENT_HEADER,
    Blob,
    BlobItemKind,
    ListOptions,
    QueueMessage,
)

__all__ = [
    "LARGE_MESSAGE_CONTENT_HEADER",
    "AccessDeniedError",
    "Blob",
    "BlobItemKind",
    "BlobNotFoundError",
    "DomainError",
    "ListOptions",
    "QueueMessage",
    "UnsupportedOperationError",
    "ValidationError",
]
