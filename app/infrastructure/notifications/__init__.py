"""Realtime notification helpers for the infrastructure layer."""

from .gateway import LiveDeliveryGateway
from .offline_cache import DEFAULT_CACHE_DEPTH, OfflineCache, create_redis_client
from .out_of_band import OutOfBandDispatcher
from .registry import ConnectionRegistry
from .serialization import (
    StreamMessage,
    deserialize_notification,
    dumps_notification,
    loads_notification,
    serialize_notification,
    to_stream_message,
)
from .stream import NotificationStream

__all__ = [
    "ConnectionRegistry",
    "DEFAULT_CACHE_DEPTH",
    "LiveDeliveryGateway",
    "NotificationStream",
    "OfflineCache",
    "OutOfBandDispatcher",
    "StreamMessage",
    "create_redis_client",
    "deserialize_notification",
    "dumps_notification",
    "loads_notification",
    "serialize_notification",
    "to_stream_message",
]
