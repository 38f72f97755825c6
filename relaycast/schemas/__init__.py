"""Beanie ODM schemas for MongoDB collections."""

from .init import init_beanie_odm
from .live_stream import DestinationConfig, LiveStream
from .stream_app import StreamApp, StreamKey
from .stream_status import LiveStreamStatus, RepublishingStatus, StreamAppStatus

__all__ = [
    "DestinationConfig",
    "LiveStream",
    "LiveStreamStatus",
    "RepublishingStatus",
    "StreamApp",
    "StreamAppStatus",
    "StreamKey",
    "init_beanie_odm",
]
