"""Stream app domain service - RTMP ingest namespaces and their keys."""

from ..repositories import (
    BeanieLiveStreamRepository,
    BeanieStreamAppRepository,
    BeanieStreamKeyRepository,
    LiveStreamRepository,
    StreamAppRepository,
    StreamKeyRepository,
)
from ._apps import StreamAppOperations
from ._keys import StreamKeyOperations
from .stream_app_models import (
    StreamAppCreateParams,
    StreamAppDetailResponse,
    StreamAppRecord,
    StreamAppUpdateParams,
    StreamKeyCreateParams,
    StreamKeyRecord,
    StreamKeyUpdateParams,
)
from .stream_identity import StreamIdentityRegistry


class StreamAppService:
    """Batch-oriented stream app service."""

    def __init__(
        self,
        apps: StreamAppRepository | None = None,
        keys: StreamKeyRepository | None = None,
        streams: LiveStreamRepository | None = None,
    ):
        apps = apps or BeanieStreamAppRepository()
        keys = keys or BeanieStreamKeyRepository()
        streams = streams or BeanieLiveStreamRepository()
        self.identity = StreamIdentityRegistry(apps, keys, streams)
        self._apps = StreamAppOperations(apps, keys, streams, self.identity)
        self._keys = StreamKeyOperations(keys, streams, self.identity)

    # ==================== APPS ====================

    async def create_app(self, params: StreamAppCreateParams) -> StreamAppDetailResponse:
        """Create a stream app for the requesting user.

        Raises ConflictError if the name or RTMP path is taken.
        """
        return await self._apps.create_app(params=params)

    async def list_apps(self, user_id: str) -> list[StreamAppRecord]:
        return await self._apps.list_apps(user_id=user_id)

    async def get_app(self, app_id: str, user_id: str) -> StreamAppDetailResponse:
        """Get an owned app with its keys.

        Raises NotFoundError if the app is missing or owned by someone else.
        """
        return await self._apps.get_app(app_id=app_id, user_id=user_id)

    async def update_app(
        self,
        app_id: str,
        user_id: str,
        params: StreamAppUpdateParams,
    ) -> StreamAppDetailResponse:
        return await self._apps.update_app(app_id=app_id, user_id=user_id, params=params)

    async def delete_app(self, app_id: str, user_id: str) -> bool:
        """Delete an app and its keys.

        Raises ConflictError while live streams reference the app.
        """
        return await self._apps.delete_app(app_id=app_id, user_id=user_id)

    # ==================== KEYS ====================

    async def create_key(
        self,
        app_id: str,
        user_id: str,
        params: StreamKeyCreateParams,
    ) -> StreamKeyRecord:
        return await self._keys.create_key(app_id=app_id, user_id=user_id, params=params)

    async def list_keys(self, app_id: str, user_id: str) -> list[StreamKeyRecord]:
        return await self._keys.list_keys(app_id=app_id, user_id=user_id)

    async def list_active_keys(self, app_id: str, user_id: str) -> list[StreamKeyRecord]:
        return await self._keys.list_active_keys(app_id=app_id, user_id=user_id)

    async def update_key(
        self,
        key_id: str,
        user_id: str,
        params: StreamKeyUpdateParams,
    ) -> StreamKeyRecord:
        return await self._keys.update_key(key_id=key_id, user_id=user_id, params=params)

    async def delete_key(self, key_id: str, user_id: str) -> bool:
        """Delete a key. Raises ConflictError while live streams reference it."""
        return await self._keys.delete_key(key_id=key_id, user_id=user_id)
