"""StreamApp / StreamKey ODM schemas."""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator

from .schema_utils import parse_mongo_datetime
from .stream_status import StreamAppStatus


class StreamApp(Document):
    """RTMP ingest namespace owned by a user."""

    app_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    user_id: Indexed(str)  # type: ignore[valid-type]

    app_name: str
    description: str | None = None
    rtmp_app_path: str
    default_stream_key: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    status: StreamAppStatus = StreamAppStatus.ACTIVE

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        """Parse MongoDB Extended JSON datetime format."""
        return parse_mongo_datetime(v)

    class Settings:
        name = "stream_app"
        indexes = [
            "user_id",
            [("user_id", 1), ("rtmp_app_path", 1)],
            [("user_id", 1), ("app_name", 1)],
        ]


class StreamKey(Document):
    """RTMP stream key scoped to one StreamApp."""

    key_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    app_id: Indexed(str)  # type: ignore[valid-type]

    key_name: str
    stream_key: str
    description: str | None = None
    is_active: bool = True
    usage_count: int = 0
    last_used_at: datetime | None = None

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", "last_used_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "stream_key"
        indexes = [
            "app_id",
            [("app_id", 1), ("key_name", 1)],
        ]
