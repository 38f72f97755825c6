from pydantic import BaseModel, ConfigDict, Field

from relaycast.domain.live.stream.stream_models import Destination, RepublishingResult
from relaycast.schemas import LiveStreamStatus, RepublishingStatus

from .serializers import OptionalUtcDatetime, UtcDatetime


class DestinationIn(BaseModel):
    platform: str = Field(default="custom", description="youtube, twitch, facebook, ... or custom")
    destination_name: str | None = Field(default=None, description="Display name")
    destination_url: str | None = Field(
        default=None,
        description="Host or rtmp:// URL; optional for well-known platforms",
    )
    destination_port: int | None = Field(default=None, description="Defaults to 1935")
    destination_app: str | None = Field(default=None, description="RTMP application")
    destination_stream: str = Field(description="Stream name / key at the destination")
    enabled: bool = True

    def to_destination(self) -> Destination:
        return Destination(**self.model_dump(exclude_none=True))


class CreateLiveStreamIn(BaseModel):
    title: str = Field(description="Title of the stream, also the source of its stream name")
    description: str | None = Field(default=None, description="Description of the stream")
    app_id: str = Field(description="Stream app providing the RTMP ingest path")
    app_key_id: str = Field(description="Stream key of that app used by the encoder")
    destinations: list[DestinationIn] = Field(default_factory=list)


class UpdateLiveStreamIn(BaseModel):
    title: str | None = Field(default=None, description="New title; the stream name is kept")
    description: str | None = None
    destinations: list[DestinationIn] | None = Field(
        default=None,
        description="Replaces all destinations; re-synchronized if the stream is live",
    )


class DestinationOut(BaseModel):
    destination_id: str
    platform: str
    destination_name: str
    destination_url: str
    destination_port: int
    destination_app: str
    destination_stream: str
    enabled: bool
    rule_id: str | None = None
    sync_status: RepublishingStatus | None = None
    last_error: str | None = None

    model_config = ConfigDict(from_attributes=True)


class LiveStreamOut(BaseModel):
    stream_id: str
    title: str
    description: str | None = None
    app_id: str
    key_id: str
    source_app: str
    source_stream: str
    status: LiveStreamStatus
    destinations: list[DestinationOut]
    started_at: OptionalUtcDatetime = None
    ended_at: OptionalUtcDatetime = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = ConfigDict(from_attributes=True)


class ListLiveStreamsOut(BaseModel):
    streams: list[LiveStreamOut]


class StartLiveStreamOut(BaseModel):
    stream: LiveStreamOut
    republishing_results: list[RepublishingResult]


class UpdateLiveStreamOut(BaseModel):
    stream: LiveStreamOut
    republishing_results: list[RepublishingResult] | None = None


class RtmpInfoOut(BaseModel):
    rtmp_url: str
    stream_key: str
    source_app: str
    source_stream: str
    republishing: list[DestinationOut]


class ActiveSessionsOut(BaseModel):
    streams: list[LiveStreamOut]
    count: int


class IngestStatusOut(BaseModel):
    stream_id: str
    source_stream: str
    status: LiveStreamStatus
    is_ingesting: bool | None = None
    error: str | None = None
