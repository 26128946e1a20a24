"""Shared test fixtures and configuration."""

from __future__ import annotations

import base64
import uuid

import pytest

from application.services.generic_blob_storage import GenericBlobStorage
from infrastructure.blob_stores.in_memory_blob_store import InMemoryBlobStore
from infrastructure.messaging.in_memory_messenger import InMemoryMessenger
from tests.mocks import FakePagedBackend, MockPrimitives


@pytest.fixture
def in_memory_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def storage(in_memory_store: InMemoryBlobStore) -> GenericBlobStorage:
    """Generic storage over a fresh in-memory store."""
    return GenericBlobStorage(in_memory_store)


@pytest.fixture
def primitives() -> MockPrimitives:
    return MockPrimitives()


@pytest.fixture
def paged_backend() -> FakePagedBackend:
    return FakePagedBackend(page_size=2)


@pytest.fixture
def messenger() -> InMemoryMessenger:
    return InMemoryMessenger()


@pytest.fixture
def aes_key() -> str:
    """Base64 encoded 256 bit key."""
    return base64.b64encode(bytes(range(32))).decode("ascii")


@pytest.fixture
def aes_iv() -> str:
    return base64.b64encode(bytes(range(16, 32))).decode("ascii")


@pytest.fixture
def memory_url() -> str:
    """Unique fsspec memory URL so tests never share state."""
    return f"memory://omnistore-test-{uuid.uuid4().hex}"
