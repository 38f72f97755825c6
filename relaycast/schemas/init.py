"""Beanie initialization for ODM."""

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorDatabase

from .live_stream import LiveStream
from .stream_app import StreamApp, StreamKey

DOCUMENT_MODELS = [
    LiveStream,
    StreamApp,
    StreamKey,
]


async def init_beanie_odm(database: AsyncIOMotorDatabase) -> None:
    """Initialize Beanie ODM with all document models."""
    await init_beanie(
        database=database,  # type: ignore[arg-type]
        document_models=DOCUMENT_MODELS,
    )


__all__ = ["DOCUMENT_MODELS", "init_beanie_odm"]
