"""Live stream domain models."""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from relaycast.schemas.stream_status import LiveStreamStatus, RepublishingStatus
from relaycast.utils.app_errors import ValidationError

from ...utils.idgen import new_destination_id
from ..stream_app.stream_identity import platform_key_name

DEFAULT_RTMP_PORT = 1935
DEFAULT_DESTINATION_APP = "live"

# Ingest endpoints of well-known platforms: (host, port, app)
PLATFORM_PRESETS: dict[str, tuple[str, int, str]] = {
    "youtube": ("a.rtmp.youtube.com", 1935, "live2"),
    "twitch": ("live.twitch.tv", 1935, "live"),
    "facebook": ("live-api-s.facebook.com", 443, "rtmp"),
}

_URL_PATTERN = re.compile(
    r"^(?:(?P<scheme>[a-z][a-z0-9+.-]*)://)?(?P<host>[^/:]+)(?::(?P<port>\d+))?(?:/(?P<path>.*))?$",
    re.IGNORECASE,
)
_HOST_PATTERN = re.compile(r"^[A-Za-z0-9.-]+$")


class Destination(BaseModel):
    """One fan-out target of a live stream.

    `destination_url` accepts a bare host or an RTMP URL such as
    `rtmp://a.rtmp.youtube.com/live2`; port and app are taken from the URL
    when not given explicitly. Well-known platforms fill in their ingest
    endpoint when the URL is omitted.
    """

    destination_id: str = Field(default_factory=new_destination_id)
    platform: str = "custom"
    destination_name: str = ""
    destination_url: str = ""
    destination_port: int = DEFAULT_RTMP_PORT
    destination_app: str = ""
    destination_stream: str = ""
    enabled: bool = True

    # Set by the last activation
    rule_id: str | None = None
    sync_status: RepublishingStatus | None = None
    last_error: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _apply_presets(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        platform = str(data.get("platform") or "custom").strip().lower()
        data["platform"] = platform
        preset = PLATFORM_PRESETS.get(platform)

        url = str(data.get("destination_url") or "").strip()
        if url:
            match = _URL_PATTERN.match(url)
            if not match:
                raise ValidationError(f"Invalid destination URL: {url}", field="destination_url")
            data["destination_url"] = match.group("host")
            if match.group("port") and not data.get("destination_port"):
                data["destination_port"] = int(match.group("port"))
            path = (match.group("path") or "").strip("/")
            if path and not data.get("destination_app"):
                data["destination_app"] = path
        elif preset:
            data["destination_url"] = preset[0]
            data.setdefault("destination_port", preset[1])
            if not data.get("destination_app"):
                data["destination_app"] = preset[2]

        if not data.get("destination_app"):
            data["destination_app"] = preset[2] if preset else DEFAULT_DESTINATION_APP
        if not data.get("destination_port"):
            data["destination_port"] = preset[1] if preset else DEFAULT_RTMP_PORT
        if not data.get("destination_name"):
            data["destination_name"] = platform_key_name(platform)
        return data

    @field_validator("destination_port", mode="before")
    @classmethod
    def _validate_port(cls, v: Any) -> int:
        try:
            port = int(v)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid destination port: {v}", field="destination_port") from None
        if not 1 <= port <= 65535:
            raise ValidationError(f"Invalid destination port: {v}", field="destination_port")
        return port

    @model_validator(mode="after")
    def _check_required(self) -> "Destination":
        if not self.destination_url or not _HOST_PATTERN.match(self.destination_url):
            raise ValidationError(
                f"Destination {self.destination_name!r} needs a valid destination_url",
                field="destination_url",
            )
        if not self.destination_stream.strip():
            raise ValidationError(
                f"Destination {self.destination_name!r} needs a destination_stream",
                field="destination_stream",
            )
        if any(ch.isspace() for ch in self.destination_app):
            raise ValidationError(
                f"Invalid destination_app: {self.destination_app!r}",
                field="destination_app",
            )
        return self

    @property
    def has_remote_rule(self) -> bool:
        return bool(self.rule_id) or self.sync_status == RepublishingStatus.CONFIGURED


class LiveStreamRecord(BaseModel):
    """Logical broadcast definition."""

    stream_id: str
    user_id: str
    title: str
    description: str | None = None
    app_id: str
    key_id: str
    source_app: str
    source_stream: str
    status: LiveStreamStatus = LiveStreamStatus.INACTIVE
    destinations: list[Destination] = Field(default_factory=list)
    # Replaced destinations whose remote rule could not be removed yet
    retired_destinations: list[Destination] = Field(default_factory=list)
    started_at: datetime | None = None
    ended_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def enabled_destinations(self) -> list[Destination]:
        return [d for d in self.destinations if d.enabled]


class ManualConfigDetails(BaseModel):
    """What an operator enters by hand in the media panel."""

    source_app: str
    source_stream: str
    dest_addr: str
    dest_port: int
    dest_app: str
    dest_stream: str


class RepublishingResult(BaseModel):
    """Outcome of synchronizing one destination."""

    destination: str
    destination_id: str
    status: RepublishingStatus
    message: str
    reason: str | None = None
    rule_id: str | None = None
    details: ManualConfigDetails | None = None


class LiveStreamCreateParams(BaseModel):
    """Parameters for creating a live stream."""

    user_id: str
    title: str
    description: str | None = None
    app_id: str
    key_id: str
    destinations: list[Destination] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 200:
            raise ValidationError("Title must be 1-200 characters", field="title")
        return v


class LiveStreamUpdateParams(BaseModel):
    """Parameters for updating a live stream.

    `source_stream` is not editable: the ingest identity of a stream stays
    fixed once created, even when the title changes.
    """

    title: str | None = None
    description: str | None = None
    destinations: list[Destination] | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v: str | None) -> str:
        v = (v or "").strip()
        if not v or len(v) > 200:
            raise ValidationError("Title must be 1-200 characters", field="title")
        return v


class LiveStreamStartResponse(BaseModel):
    stream: LiveStreamRecord
    republishing_results: list[RepublishingResult]


class LiveStreamUpdateResponse(BaseModel):
    stream: LiveStreamRecord
    # Present only when destinations of a live stream were re-synchronized
    republishing_results: list[RepublishingResult] | None = None


class RtmpInfoResponse(BaseModel):
    """Ingest connection details for an encoder."""

    rtmp_url: str
    stream_key: str
    source_app: str
    source_stream: str
    republishing: list[Destination]


class IngestStatusResponse(BaseModel):
    stream_id: str
    source_stream: str
    status: LiveStreamStatus
    is_ingesting: bool | None = None
    error: str | None = None


class ActiveSessionsResponse(BaseModel):
    streams: list[LiveStreamRecord]
    count: int
