"""Stream key operations."""

from loguru import logger

from relaycast.shared.api.utils import mask_secret
from relaycast.shared.domain.entity_change import utc_now
from relaycast.utils.app_errors import AppErrorCode, ConflictError, NotFoundError

from ...utils.idgen import new_stream_key_id
from ..repositories import LiveStreamRepository, StreamKeyRepository
from .stream_app_models import StreamKeyCreateParams, StreamKeyRecord, StreamKeyUpdateParams
from .stream_identity import StreamIdentityRegistry


class StreamKeyOperations:
    """Stream key CRUD. Ownership is checked through the parent app."""

    def __init__(
        self,
        keys: StreamKeyRepository,
        streams: LiveStreamRepository,
        identity: StreamIdentityRegistry,
    ):
        self.keys = keys
        self.streams = streams
        self.identity = identity

    async def _get_owned_key(self, key_id: str, user_id: str) -> StreamKeyRecord:
        key = await self.keys.get(key_id)
        if key is None:
            raise NotFoundError(
                f"Stream key not found: {key_id}",
                errcode=AppErrorCode.E_STREAM_KEY_NOT_FOUND,
            )
        try:
            await self.identity.get_owned_app(key.app_id, user_id)
        except NotFoundError:
            raise NotFoundError(
                f"Stream key not found: {key_id}",
                errcode=AppErrorCode.E_STREAM_KEY_NOT_FOUND,
            ) from None
        return key

    async def create_key(
        self,
        app_id: str,
        user_id: str,
        params: StreamKeyCreateParams,
    ) -> StreamKeyRecord:
        await self.identity.get_owned_app(app_id, user_id)
        if await self.keys.find_by_name(app_id, params.key_name):
            raise ConflictError(f"Key name already exists in this app: {params.key_name}")

        now = utc_now()
        key = StreamKeyRecord(
            key_id=new_stream_key_id(),
            app_id=app_id,
            created_at=now,
            updated_at=now,
            **params.model_dump(),
        )
        await self.keys.insert(key)
        logger.info(f"Created stream key {key.key_id} ({mask_secret(key.stream_key)}) in app {app_id}")
        return key

    async def list_keys(self, app_id: str, user_id: str) -> list[StreamKeyRecord]:
        await self.identity.get_owned_app(app_id, user_id)
        return await self.keys.list_by_app(app_id)

    async def list_active_keys(self, app_id: str, user_id: str) -> list[StreamKeyRecord]:
        """Active keys of an app, least used first."""
        await self.identity.get_owned_app(app_id, user_id)
        return await self.keys.list_by_app(app_id, active_only=True)

    async def update_key(
        self,
        key_id: str,
        user_id: str,
        params: StreamKeyUpdateParams,
    ) -> StreamKeyRecord:
        key = await self._get_owned_key(key_id, user_id)
        updates = params.model_dump(exclude_unset=True)

        new_name = updates.get("key_name")
        if new_name is not None and new_name != key.key_name:
            existing = await self.keys.find_by_name(key.app_id, new_name)
            if existing and existing.key_id != key_id:
                raise ConflictError(f"Key name already exists in this app: {new_name}")

        changed_keys = [field for field, value in updates.items() if getattr(key, field) != value]
        for field in changed_keys:
            setattr(key, field, updates[field])

        if changed_keys:
            key.updated_at = utc_now()
            logger.debug(f"Updating stream key {key_id}: {changed_keys}")
            await self.keys.save(key)
        return key

    async def delete_key(self, key_id: str, user_id: str) -> bool:
        key = await self._get_owned_key(key_id, user_id)
        if await self.streams.exists_for_key(key_id):
            raise ConflictError(
                f"Stream key {key_id} is used by live streams",
                errcode=AppErrorCode.E_STREAM_KEY_IN_USE,
            )
        deleted = await self.keys.delete(key.key_id)
        logger.info(f"Deleted stream key {key_id} of app {key.app_id}")
        return deleted
