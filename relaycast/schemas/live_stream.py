"""LiveStream ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import BaseModel, Field, field_validator

from .schema_utils import parse_mongo_datetime
from .stream_status import LiveStreamStatus, RepublishingStatus


class DestinationConfig(BaseModel):
    """Embedded fan-out target of a live stream."""

    destination_id: str
    platform: str = "custom"
    destination_name: str
    destination_url: str
    destination_port: int = 1935
    destination_app: str
    destination_stream: str
    enabled: bool = True

    # Remote bookkeeping from the last activation
    rule_id: str | None = None
    sync_status: RepublishingStatus | None = None
    last_error: str | None = None


class LiveStream(Document):
    """Logical broadcast definition."""

    stream_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    user_id: Indexed(str)  # type: ignore[valid-type]

    title: str
    description: str | None = None
    app_id: Indexed(str)  # type: ignore[valid-type]
    key_id: str
    source_app: str
    source_stream: str
    status: LiveStreamStatus = LiveStreamStatus.INACTIVE
    destinations: list[DestinationConfig] = Field(default_factory=list)
    retired_destinations: list[DestinationConfig] = Field(default_factory=list)

    started_at: datetime | None = None
    ended_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", "started_at", "ended_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "live_stream"
        indexes = [
            "user_id",
            "app_id",
            [("user_id", 1), ("status", 1)],
            [("app_id", 1), ("source_stream", 1)],
        ]
