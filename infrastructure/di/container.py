from __future__ import annotations

import datetime

import structlog
from lagom import Container

from application.ports.blob_storage import BlobStorage
from application.ports.messenger import Messenger
from application.ports.transform_sink import TransformSink
from application.services.large_message import LargeMessageMessenger
from application.services.sinked_blob_storage import SinkedBlobStorage
from infrastructure.blob_stores.factory import create_fsspec_storage
from infrastructure.config import Settings, settings
from infrastructure.messaging.in_memory_messenger import InMemoryMessenger
from infrastructure.messaging.receiver_factory import MessageReceiverFactory
from infrastructure.sinks.encryption_sink import AesEncryptionSink
from infrastructure.sinks.gzip_sink import GZipSink

logger = structlog.get_logger()


def create_sinks(app_settings: Settings) -> list[TransformSink]:
    """Sinks in storage order: compression sits below encryption."""
    sinks: list[TransformSink] = []
    if app_settings.blob_gzip_enabled:
        sinks.append(GZipSink())
    if app_settings.blob_encryption_key:
        encryption = AesEncryptionSink(app_settings.blob_encryption_key, app_settings.blob_encryption_iv)
        if not app_settings.blob_encryption_iv:
            logger.warning("blob_encryption_iv_generated", iv=encryption.secret)
        sinks.append(encryption)
    return sinks


def create_blob_storage(app_settings: Settings) -> BlobStorage:
    storage = create_fsspec_storage(
        app_settings.blob_base_url,
        storage_options=app_settings.blob_storage_options,
    )
    sinks = create_sinks(app_settings)
    if not sinks:
        return storage
    return SinkedBlobStorage(storage, sinks)


def create_container(app_settings: Settings | None = None) -> Container:
    app_settings = app_settings or settings
    container = Container()

    container[Settings] = app_settings

    # Blob storage
    blob_storage = create_blob_storage(app_settings)
    container[BlobStorage] = blob_storage

    # Messaging
    # Receivers poll the raw messenger; offloaded content is restored by the receiver decorator
    visibility = datetime.timedelta(seconds=app_settings.message_visibility_seconds)
    in_memory_messenger = InMemoryMessenger(default_visibility=visibility)
    container[InMemoryMessenger] = in_memory_messenger

    container[Messenger] = LargeMessageMessenger(
        parent=in_memory_messenger,
        offload_storage=blob_storage,
        min_size_large=app_settings.large_message_threshold,
    )
    container[MessageReceiverFactory] = MessageReceiverFactory(
        messenger=in_memory_messenger,
        offload_storage=blob_storage,
        poll_interval=app_settings.message_poll_interval_seconds,
        visibility=visibility,
    )

    return container
