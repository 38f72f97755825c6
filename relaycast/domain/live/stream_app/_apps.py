"""Stream app operations."""

from loguru import logger

from relaycast.shared.domain.entity_change import utc_now
from relaycast.utils.app_errors import AppErrorCode, ConflictError

from ...utils.idgen import new_stream_app_id, new_stream_key_id
from ..repositories import LiveStreamRepository, StreamAppRepository, StreamKeyRepository
from .stream_app_models import (
    StreamAppCreateParams,
    StreamAppDetailResponse,
    StreamAppRecord,
    StreamAppUpdateParams,
    StreamKeyRecord,
)
from .stream_identity import StreamIdentityRegistry

PRIMARY_KEY_NAME = "primary"


class StreamAppOperations:
    """Stream app CRUD with per-owner uniqueness of name and RTMP path."""

    def __init__(
        self,
        apps: StreamAppRepository,
        keys: StreamKeyRepository,
        streams: LiveStreamRepository,
        identity: StreamIdentityRegistry,
    ):
        self.apps = apps
        self.keys = keys
        self.streams = streams
        self.identity = identity

    async def _ensure_unique(
        self,
        user_id: str,
        app_name: str | None = None,
        rtmp_app_path: str | None = None,
        exclude_app_id: str | None = None,
    ) -> None:
        if app_name is not None:
            existing = await self.apps.find_by_name(user_id, app_name)
            if existing and existing.app_id != exclude_app_id:
                raise ConflictError(f"Stream app name already in use: {app_name}")
        if rtmp_app_path is not None:
            existing = await self.apps.find_by_path(user_id, rtmp_app_path)
            if existing and existing.app_id != exclude_app_id:
                raise ConflictError(f"RTMP app path already in use: {rtmp_app_path}")

    async def _upsert_primary_key(self, app: StreamAppRecord, stream_key: str) -> None:
        now = utc_now()
        primary = await self.keys.find_by_name(app.app_id, PRIMARY_KEY_NAME)
        if primary is None:
            await self.keys.insert(
                StreamKeyRecord(
                    key_id=new_stream_key_id(),
                    app_id=app.app_id,
                    key_name=PRIMARY_KEY_NAME,
                    stream_key=stream_key,
                    description="Default stream key",
                    created_at=now,
                    updated_at=now,
                )
            )
        elif primary.stream_key != stream_key:
            primary.stream_key = stream_key
            primary.updated_at = now
            await self.keys.save(primary)

    async def create_app(self, params: StreamAppCreateParams) -> StreamAppDetailResponse:
        """Create a stream app; a `primary` key is added when a default key is given.

        Raises ConflictError if the name or RTMP path is already used by the owner.
        """
        await self._ensure_unique(params.user_id, params.app_name, params.rtmp_app_path)

        now = utc_now()
        app = StreamAppRecord(
            app_id=new_stream_app_id(),
            created_at=now,
            updated_at=now,
            **params.model_dump(),
        )
        await self.apps.insert(app)

        if app.default_stream_key:
            await self._upsert_primary_key(app, app.default_stream_key)

        logger.info(f"Created stream app {app.app_id} ({app.rtmp_app_path}) for user {app.user_id}")
        return StreamAppDetailResponse(app=app, keys=await self.keys.list_by_app(app.app_id))

    async def list_apps(self, user_id: str) -> list[StreamAppRecord]:
        return await self.apps.list_by_user(user_id)

    async def get_app(self, app_id: str, user_id: str) -> StreamAppDetailResponse:
        app = await self.identity.get_owned_app(app_id, user_id)
        return StreamAppDetailResponse(app=app, keys=await self.keys.list_by_app(app_id))

    async def update_app(
        self,
        app_id: str,
        user_id: str,
        params: StreamAppUpdateParams,
    ) -> StreamAppDetailResponse:
        """Update a stream app.

        The RTMP path is part of every stream's ingest identity, so it cannot
        change while streams reference the app.
        """
        app = await self.identity.get_owned_app(app_id, user_id)
        updates = params.model_dump(exclude_unset=True)
        for field in ("settings", "status"):
            if field in updates and updates[field] is None:
                del updates[field]

        new_name = updates.get("app_name")
        new_path = updates.get("rtmp_app_path")
        await self._ensure_unique(
            user_id,
            app_name=new_name if new_name != app.app_name else None,
            rtmp_app_path=new_path if new_path != app.rtmp_app_path else None,
            exclude_app_id=app_id,
        )
        if new_path is not None and new_path != app.rtmp_app_path:
            if await self.streams.exists_for_app(app_id):
                raise ConflictError(
                    f"Cannot change RTMP app path of {app_id} while streams use it",
                    errcode=AppErrorCode.E_STREAM_APP_IN_USE,
                )

        changed_keys: list[str] = []
        for field, value in updates.items():
            if getattr(app, field) != value:
                setattr(app, field, value)
                changed_keys.append(field)

        if changed_keys:
            app.updated_at = utc_now()
            logger.debug(f"Updating stream app {app_id}: {changed_keys}")
            await self.apps.save(app)
            if "default_stream_key" in changed_keys and app.default_stream_key:
                await self._upsert_primary_key(app, app.default_stream_key)

        return StreamAppDetailResponse(app=app, keys=await self.keys.list_by_app(app_id))

    async def delete_app(self, app_id: str, user_id: str) -> bool:
        """Delete an app and its keys; rejected while streams reference it."""
        await self.identity.get_owned_app(app_id, user_id)
        if await self.streams.exists_for_app(app_id):
            raise ConflictError(
                f"Stream app {app_id} is used by live streams, delete them first",
                errcode=AppErrorCode.E_STREAM_APP_IN_USE,
            )

        await self.keys.delete_by_app(app_id)
        deleted = await self.apps.delete(app_id)
        logger.info(f"Deleted stream app {app_id}")
        return deleted
