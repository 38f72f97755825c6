from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from relaycast.schemas import StreamAppStatus

from .serializers import OptionalUtcDatetime, UtcDatetime


class CreateStreamAppIn(BaseModel):
    app_name: str = Field(description="Display name, 2-100 characters, unique per user")
    description: str | None = Field(default=None, description="At most 500 characters")
    rtmp_app_path: str = Field(description="RTMP application path: [a-zA-Z0-9_-], 2-50 characters")
    default_stream_key: str | None = Field(
        default=None,
        description="Creates a key named 'primary' when given",
    )
    settings: dict[str, Any] = Field(default_factory=dict)
    status: StreamAppStatus = StreamAppStatus.ACTIVE


class UpdateStreamAppIn(BaseModel):
    app_name: str | None = None
    description: str | None = None
    rtmp_app_path: str | None = None
    default_stream_key: str | None = None
    settings: dict[str, Any] | None = None
    status: StreamAppStatus | None = None


class CreateStreamKeyIn(BaseModel):
    key_name: str = Field(description="2-100 characters, unique within the app")
    stream_key: str = Field(description="RTMP stream key, 8-255 characters")
    description: str | None = None
    is_active: bool = True


class UpdateStreamKeyIn(BaseModel):
    key_name: str | None = None
    stream_key: str | None = None
    description: str | None = None
    is_active: bool | None = None


class StreamKeyOut(BaseModel):
    key_id: str
    app_id: str
    key_name: str
    stream_key: str
    description: str | None = None
    is_active: bool
    usage_count: int
    last_used_at: OptionalUtcDatetime = None
    created_at: UtcDatetime

    model_config = ConfigDict(from_attributes=True)


class StreamAppOut(BaseModel):
    app_id: str
    app_name: str
    description: str | None = None
    rtmp_app_path: str
    settings: dict[str, Any]
    status: StreamAppStatus
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = ConfigDict(from_attributes=True)


class StreamAppDetailOut(BaseModel):
    app: StreamAppOut
    keys: list[StreamKeyOut]


class ListStreamAppsOut(BaseModel):
    apps: list[StreamAppOut]


class ListStreamKeysOut(BaseModel):
    keys: list[StreamKeyOut]
