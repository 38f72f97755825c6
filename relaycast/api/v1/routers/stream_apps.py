from fastapi import APIRouter, Depends, Query

from relaycast.api.v1.dependency import CurrentUser
from relaycast.api.v1.schemas.base import ApiOut, DeletedOut
from relaycast.api.v1.schemas.stream_app import (
    CreateStreamAppIn,
    CreateStreamKeyIn,
    ListStreamAppsOut,
    ListStreamKeysOut,
    StreamAppDetailOut,
    StreamAppOut,
    StreamKeyOut,
    UpdateStreamAppIn,
    UpdateStreamKeyIn,
)
from relaycast.domain.live.stream_app.stream_app_domain import StreamAppService
from relaycast.domain.live.stream_app.stream_app_models import (
    StreamAppCreateParams,
    StreamAppDetailResponse,
    StreamAppUpdateParams,
    StreamKeyCreateParams,
    StreamKeyUpdateParams,
)

router = APIRouter(prefix="/stream-apps", tags=["Stream Apps"])

# Singleton instance
_stream_app_service = StreamAppService()


def get_stream_app_service() -> StreamAppService:
    """Get the singleton StreamAppService instance."""
    return _stream_app_service


def _detail_out(detail: StreamAppDetailResponse) -> StreamAppDetailOut:
    return StreamAppDetailOut(
        app=StreamAppOut.model_validate(detail.app),
        keys=[StreamKeyOut.model_validate(k) for k in detail.keys],
    )


@router.get("")
async def list_apps(
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[ListStreamAppsOut]:
    apps = await service.list_apps(user.user_id)
    return ApiOut[ListStreamAppsOut](
        results=ListStreamAppsOut(apps=[StreamAppOut.model_validate(a) for a in apps])
    )


@router.post("")
async def create_app(
    body: CreateStreamAppIn,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[StreamAppDetailOut]:
    """Create a stream app; `default_stream_key` also creates a 'primary' key."""
    params = StreamAppCreateParams(user_id=user.user_id, **body.model_dump())
    detail = await service.create_app(params)
    return ApiOut[StreamAppDetailOut](results=_detail_out(detail))


@router.put("/keys/{key_id}")
async def update_key(
    key_id: str,
    body: UpdateStreamKeyIn,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[StreamKeyOut]:
    params = StreamKeyUpdateParams(**body.model_dump(exclude_unset=True))
    key = await service.update_key(key_id, user.user_id, params)
    return ApiOut[StreamKeyOut](results=StreamKeyOut.model_validate(key))


@router.delete("/keys/{key_id}")
async def delete_key(
    key_id: str,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[DeletedOut]:
    """Delete a key; rejected while streams use it."""
    deleted = await service.delete_key(key_id, user.user_id)
    return ApiOut[DeletedOut](results=DeletedOut(deleted=deleted))


@router.get("/{app_id}")
async def get_app(
    app_id: str,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[StreamAppDetailOut]:
    """Get a stream app together with its keys."""
    detail = await service.get_app(app_id, user.user_id)
    return ApiOut[StreamAppDetailOut](results=_detail_out(detail))


@router.put("/{app_id}")
async def update_app(
    app_id: str,
    body: UpdateStreamAppIn,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[StreamAppDetailOut]:
    # Only include fields that were explicitly provided in the request
    params = StreamAppUpdateParams(**body.model_dump(exclude_unset=True))
    detail = await service.update_app(app_id, user.user_id, params)
    return ApiOut[StreamAppDetailOut](results=_detail_out(detail))


@router.delete("/{app_id}")
async def delete_app(
    app_id: str,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[DeletedOut]:
    """Delete a stream app and its keys; rejected while streams use it."""
    deleted = await service.delete_app(app_id, user.user_id)
    return ApiOut[DeletedOut](results=DeletedOut(deleted=deleted))


@router.get("/{app_id}/keys")
async def list_keys(
    app_id: str,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
    active_only: bool = Query(False, description="Only active keys, least used first"),
) -> ApiOut[ListStreamKeysOut]:
    if active_only:
        keys = await service.list_active_keys(app_id, user.user_id)
    else:
        keys = await service.list_keys(app_id, user.user_id)
    return ApiOut[ListStreamKeysOut](
        results=ListStreamKeysOut(keys=[StreamKeyOut.model_validate(k) for k in keys])
    )


@router.post("/{app_id}/keys")
async def create_key(
    app_id: str,
    body: CreateStreamKeyIn,
    user: CurrentUser,
    service: StreamAppService = Depends(get_stream_app_service),
) -> ApiOut[StreamKeyOut]:
    params = StreamKeyCreateParams(**body.model_dump())
    key = await service.create_key(app_id, user.user_id, params)
    return ApiOut[StreamKeyOut](results=StreamKeyOut.model_validate(key))
