from fastapi import APIRouter, Depends, Query

from relaycast.api.v1.dependency import CurrentUser
from relaycast.api.v1.schemas.base import ApiOut, DeletedOut
from relaycast.api.v1.schemas.live import (
    ActiveSessionsOut,
    CreateLiveStreamIn,
    IngestStatusOut,
    ListLiveStreamsOut,
    LiveStreamOut,
    RtmpInfoOut,
    StartLiveStreamOut,
    UpdateLiveStreamIn,
    UpdateLiveStreamOut,
)
from relaycast.domain.live.stream.stream_domain import StreamLifecycleManager
from relaycast.domain.live.stream.stream_models import (
    LiveStreamCreateParams,
    LiveStreamUpdateParams,
)
from relaycast.schemas import LiveStreamStatus

router = APIRouter(prefix="/live", tags=["Live"])

# Singleton instance
_stream_manager = StreamLifecycleManager()


def get_stream_manager() -> StreamLifecycleManager:
    """Get the singleton StreamLifecycleManager instance."""
    return _stream_manager


@router.get("")
async def list_streams(
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
    status: LiveStreamStatus | None = Query(None, description="Filter by status"),
) -> ApiOut[ListLiveStreamsOut]:
    """List the caller's streams, newest first."""
    streams = await manager.list_streams(user.user_id, status=status)
    return ApiOut[ListLiveStreamsOut](
        results=ListLiveStreamsOut(streams=[LiveStreamOut.model_validate(s) for s in streams])
    )


@router.post("")
async def create_stream(
    body: CreateLiveStreamIn,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[LiveStreamOut]:
    """Create a stream under one of the caller's stream apps. It starts inactive."""
    params = LiveStreamCreateParams(
        user_id=user.user_id,
        title=body.title,
        description=body.description,
        app_id=body.app_id,
        key_id=body.app_key_id,
        destinations=[d.to_destination() for d in body.destinations],
    )
    stream = await manager.create_stream(params)
    return ApiOut[LiveStreamOut](results=LiveStreamOut.model_validate(stream))


@router.get("/sessions/active")
async def get_active_sessions(
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[ActiveSessionsOut]:
    """The caller's streams that are currently live."""
    result = await manager.get_active_sessions(user.user_id)
    return ApiOut[ActiveSessionsOut](
        results=ActiveSessionsOut(
            streams=[LiveStreamOut.model_validate(s) for s in result.streams],
            count=result.count,
        )
    )


@router.get("/{stream_id}")
async def get_stream(
    stream_id: str,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[LiveStreamOut]:
    stream = await manager.get_stream(stream_id, user.user_id)
    return ApiOut[LiveStreamOut](results=LiveStreamOut.model_validate(stream))


@router.put("/{stream_id}")
async def update_stream(
    stream_id: str,
    body: UpdateLiveStreamIn,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[UpdateLiveStreamOut]:
    """Update title, description or destinations of a stream."""
    # Only include fields that were explicitly provided in the request
    update_data = body.model_dump(exclude_unset=True, exclude={"destinations"})
    if "destinations" in body.model_fields_set and body.destinations is not None:
        update_data["destinations"] = [d.to_destination() for d in body.destinations]
    params = LiveStreamUpdateParams(**update_data)

    result = await manager.update_stream(stream_id, user.user_id, params)
    return ApiOut[UpdateLiveStreamOut](
        results=UpdateLiveStreamOut(
            stream=LiveStreamOut.model_validate(result.stream),
            republishing_results=result.republishing_results,
        )
    )


@router.delete("/{stream_id}")
async def delete_stream(
    stream_id: str,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[DeletedOut]:
    deleted = await manager.delete_stream(stream_id, user.user_id)
    return ApiOut[DeletedOut](results=DeletedOut(deleted=deleted))


@router.post("/{stream_id}/start")
async def start_stream(
    stream_id: str,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[StartLiveStreamOut]:
    """Go live and configure republishing.

    Succeeds even when the media panel is unreachable; affected destinations
    come back as `manual_required` with the values to enter by hand.
    """
    result = await manager.start_stream(stream_id, user.user_id)
    return ApiOut[StartLiveStreamOut](
        results=StartLiveStreamOut(
            stream=LiveStreamOut.model_validate(result.stream),
            republishing_results=result.republishing_results,
        )
    )


@router.post("/{stream_id}/stop")
async def stop_stream(
    stream_id: str,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[LiveStreamOut]:
    """Stop republishing; the stream returns to inactive and can be started again."""
    stream = await manager.stop_stream(stream_id, user.user_id)
    return ApiOut[LiveStreamOut](results=LiveStreamOut.model_validate(stream))


@router.post("/{stream_id}/end")
async def end_stream(
    stream_id: str,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[LiveStreamOut]:
    """Finish a live broadcast."""
    stream = await manager.end_stream(stream_id, user.user_id)
    return ApiOut[LiveStreamOut](results=LiveStreamOut.model_validate(stream))


@router.get("/{stream_id}/rtmp")
async def get_rtmp_info(
    stream_id: str,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[RtmpInfoOut]:
    """Ingest URL, stream key and destinations for the encoder setup."""
    info = await manager.get_rtmp_info(stream_id, user.user_id)
    return ApiOut[RtmpInfoOut](results=RtmpInfoOut.model_validate(info, from_attributes=True))


@router.get("/{stream_id}/status")
async def get_ingest_status(
    stream_id: str,
    user: CurrentUser,
    manager: StreamLifecycleManager = Depends(get_stream_manager),
) -> ApiOut[IngestStatusOut]:
    """Whether the media server is receiving the stream's source feed."""
    status = await manager.get_ingest_status(stream_id, user.user_id)
    return ApiOut[IngestStatusOut](results=IngestStatusOut(**status.model_dump()))
