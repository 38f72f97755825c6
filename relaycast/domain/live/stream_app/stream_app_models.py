"""Stream app domain models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from relaycast.schemas.stream_status import StreamAppStatus
from relaycast.utils.app_errors import ValidationError

from .stream_identity import (
    validate_app_path,
    validate_description,
    validate_name,
    validate_stream_key,
)


class StreamKeyRecord(BaseModel):
    """RTMP stream key scoped to one stream app."""

    key_id: str
    app_id: str
    key_name: str
    stream_key: str
    description: str | None = None
    is_active: bool = True
    usage_count: int = 0
    last_used_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class StreamAppRecord(BaseModel):
    """RTMP ingest namespace owned by a user."""

    app_id: str
    user_id: str
    app_name: str
    description: str | None = None
    rtmp_app_path: str
    default_stream_key: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    status: StreamAppStatus = StreamAppStatus.ACTIVE
    created_at: datetime
    updated_at: datetime


class StreamAppDetailResponse(BaseModel):
    """Stream app together with its keys."""

    app: StreamAppRecord
    keys: list[StreamKeyRecord]


class StreamAppCreateParams(BaseModel):
    """Parameters for creating a stream app."""

    user_id: str
    app_name: str
    description: str | None = None
    rtmp_app_path: str
    default_stream_key: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    status: StreamAppStatus = StreamAppStatus.ACTIVE

    @field_validator("app_name")
    @classmethod
    def _validate_app_name(cls, v: str) -> str:
        return validate_name(v, "app_name")

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v: str | None) -> str | None:
        return validate_description(v)

    @field_validator("rtmp_app_path")
    @classmethod
    def _validate_app_path(cls, v: str) -> str:
        return validate_app_path(v)

    @field_validator("default_stream_key")
    @classmethod
    def _validate_default_stream_key(cls, v: str | None) -> str | None:
        return validate_stream_key(v) if v is not None else None


class StreamAppUpdateParams(BaseModel):
    """Parameters for updating a stream app. Unset fields are left unchanged."""

    app_name: str | None = None
    description: str | None = None
    rtmp_app_path: str | None = None
    default_stream_key: str | None = None
    settings: dict[str, Any] | None = None
    status: StreamAppStatus | None = None

    @field_validator("app_name")
    @classmethod
    def _validate_app_name(cls, v: str | None) -> str | None:
        if v is None:
            raise ValidationError("app_name cannot be null", field="app_name")
        return validate_name(v, "app_name")

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v: str | None) -> str | None:
        return validate_description(v)

    @field_validator("rtmp_app_path")
    @classmethod
    def _validate_app_path(cls, v: str | None) -> str:
        return validate_app_path(v)

    @field_validator("default_stream_key")
    @classmethod
    def _validate_default_stream_key(cls, v: str | None) -> str | None:
        return validate_stream_key(v) if v is not None else None


class StreamKeyCreateParams(BaseModel):
    """Parameters for adding a key to a stream app."""

    key_name: str
    stream_key: str
    description: str | None = None
    is_active: bool = True

    @field_validator("key_name")
    @classmethod
    def _validate_key_name(cls, v: str) -> str:
        return validate_name(v, "key_name")

    @field_validator("stream_key")
    @classmethod
    def _validate_stream_key(cls, v: str) -> str:
        return validate_stream_key(v)

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v: str | None) -> str | None:
        return validate_description(v)


class StreamKeyUpdateParams(BaseModel):
    """Parameters for updating a stream key. Unset fields are left unchanged."""

    key_name: str | None = None
    stream_key: str | None = None
    description: str | None = None
    is_active: bool | None = None

    @field_validator("key_name")
    @classmethod
    def _validate_key_name(cls, v: str | None) -> str:
        if v is None:
            raise ValidationError("key_name cannot be null", field="key_name")
        return validate_name(v, "key_name")

    @field_validator("stream_key")
    @classmethod
    def _validate_stream_key(cls, v: str | None) -> str:
        return validate_stream_key(v)

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v: str | None) -> str | None:
        return validate_description(v)
