"""Persistence ports for the live domain and their MongoDB/Beanie implementations.

The domain works on plain pydantic records. Repositories are the only place
that touches Beanie documents, so the services can run against any store that
implements these interfaces.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from beanie.operators import Inc, Set
from loguru import logger

from relaycast.schemas import LiveStream, LiveStreamStatus, StreamApp, StreamKey

from .stream.stream_models import LiveStreamRecord
from .stream_app.stream_app_models import StreamAppRecord, StreamKeyRecord

_DOCUMENT_EXCLUDE = {"id", "revision_id"}


class StreamAppRepository(ABC):
    @abstractmethod
    async def get(self, app_id: str) -> StreamAppRecord | None: ...

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[StreamAppRecord]: ...

    @abstractmethod
    async def find_by_path(self, user_id: str, rtmp_app_path: str) -> StreamAppRecord | None: ...

    @abstractmethod
    async def find_by_name(self, user_id: str, app_name: str) -> StreamAppRecord | None: ...

    @abstractmethod
    async def insert(self, app: StreamAppRecord) -> StreamAppRecord: ...

    @abstractmethod
    async def save(self, app: StreamAppRecord) -> StreamAppRecord: ...

    @abstractmethod
    async def delete(self, app_id: str) -> bool: ...


class StreamKeyRepository(ABC):
    @abstractmethod
    async def get(self, key_id: str) -> StreamKeyRecord | None: ...

    @abstractmethod
    async def list_by_app(self, app_id: str, active_only: bool = False) -> list[StreamKeyRecord]:
        """Keys of an app; with `active_only`, least used first."""

    @abstractmethod
    async def find_by_name(self, app_id: str, key_name: str) -> StreamKeyRecord | None: ...

    @abstractmethod
    async def insert(self, key: StreamKeyRecord) -> StreamKeyRecord: ...

    @abstractmethod
    async def save(self, key: StreamKeyRecord) -> StreamKeyRecord: ...

    @abstractmethod
    async def delete(self, key_id: str) -> bool: ...

    @abstractmethod
    async def delete_by_app(self, app_id: str) -> int: ...

    @abstractmethod
    async def record_usage(self, key_id: str, used_at: datetime) -> None: ...


class LiveStreamRepository(ABC):
    @abstractmethod
    async def get(self, stream_id: str) -> LiveStreamRecord | None: ...

    @abstractmethod
    async def list_by_user(
        self,
        user_id: str,
        status: LiveStreamStatus | None = None,
    ) -> list[LiveStreamRecord]:
        """Streams of a user, newest first."""

    @abstractmethod
    async def list_source_streams(self, app_id: str) -> set[str]: ...

    @abstractmethod
    async def exists_for_app(self, app_id: str) -> bool: ...

    @abstractmethod
    async def exists_for_key(self, key_id: str) -> bool: ...

    @abstractmethod
    async def insert(self, stream: LiveStreamRecord) -> LiveStreamRecord: ...

    @abstractmethod
    async def save(self, stream: LiveStreamRecord) -> LiveStreamRecord: ...

    @abstractmethod
    async def delete(self, stream_id: str) -> bool: ...


class BeanieStreamAppRepository(StreamAppRepository):
    @staticmethod
    def _to_record(doc: StreamApp) -> StreamAppRecord:
        return StreamAppRecord.model_validate(doc.model_dump(exclude=_DOCUMENT_EXCLUDE))

    async def get(self, app_id: str) -> StreamAppRecord | None:
        doc = await StreamApp.find_one(StreamApp.app_id == app_id)
        return self._to_record(doc) if doc else None

    async def list_by_user(self, user_id: str) -> list[StreamAppRecord]:
        docs = await StreamApp.find(StreamApp.user_id == user_id).sort("-created_at").to_list()
        return [self._to_record(doc) for doc in docs]

    async def find_by_path(self, user_id: str, rtmp_app_path: str) -> StreamAppRecord | None:
        doc = await StreamApp.find_one(
            StreamApp.user_id == user_id,
            StreamApp.rtmp_app_path == rtmp_app_path,
        )
        return self._to_record(doc) if doc else None

    async def find_by_name(self, user_id: str, app_name: str) -> StreamAppRecord | None:
        doc = await StreamApp.find_one(
            StreamApp.user_id == user_id,
            StreamApp.app_name == app_name,
        )
        return self._to_record(doc) if doc else None

    async def insert(self, app: StreamAppRecord) -> StreamAppRecord:
        await StreamApp(**app.model_dump()).insert()
        return app

    async def save(self, app: StreamAppRecord) -> StreamAppRecord:
        existing = await StreamApp.find_one(StreamApp.app_id == app.app_id)
        doc = StreamApp(**app.model_dump())
        if existing:
            doc.id = existing.id
        await doc.save()
        return app

    async def delete(self, app_id: str) -> bool:
        result = await StreamApp.find_one(StreamApp.app_id == app_id).delete()
        return bool(result and result.deleted_count)


class BeanieStreamKeyRepository(StreamKeyRepository):
    @staticmethod
    def _to_record(doc: StreamKey) -> StreamKeyRecord:
        return StreamKeyRecord.model_validate(doc.model_dump(exclude=_DOCUMENT_EXCLUDE))

    async def get(self, key_id: str) -> StreamKeyRecord | None:
        doc = await StreamKey.find_one(StreamKey.key_id == key_id)
        return self._to_record(doc) if doc else None

    async def list_by_app(self, app_id: str, active_only: bool = False) -> list[StreamKeyRecord]:
        if active_only:
            query = StreamKey.find(StreamKey.app_id == app_id, StreamKey.is_active == True)  # noqa: E712
            docs = await query.sort("+usage_count", "+created_at").to_list()
        else:
            docs = await StreamKey.find(StreamKey.app_id == app_id).sort("+created_at").to_list()
        return [self._to_record(doc) for doc in docs]

    async def find_by_name(self, app_id: str, key_name: str) -> StreamKeyRecord | None:
        doc = await StreamKey.find_one(StreamKey.app_id == app_id, StreamKey.key_name == key_name)
        return self._to_record(doc) if doc else None

    async def insert(self, key: StreamKeyRecord) -> StreamKeyRecord:
        await StreamKey(**key.model_dump()).insert()
        return key

    async def save(self, key: StreamKeyRecord) -> StreamKeyRecord:
        existing = await StreamKey.find_one(StreamKey.key_id == key.key_id)
        doc = StreamKey(**key.model_dump())
        if existing:
            doc.id = existing.id
        await doc.save()
        return key

    async def delete(self, key_id: str) -> bool:
        result = await StreamKey.find_one(StreamKey.key_id == key_id).delete()
        return bool(result and result.deleted_count)

    async def delete_by_app(self, app_id: str) -> int:
        result = await StreamKey.find(StreamKey.app_id == app_id).delete()
        deleted = result.deleted_count if result else 0
        logger.debug(f"Deleted {deleted} keys of stream app {app_id}")
        return deleted

    async def record_usage(self, key_id: str, used_at: datetime) -> None:
        await StreamKey.find_one(StreamKey.key_id == key_id).update(
            Inc({StreamKey.usage_count: 1}),
            Set({StreamKey.last_used_at: used_at, StreamKey.updated_at: used_at}),
        )


class BeanieLiveStreamRepository(LiveStreamRepository):
    @staticmethod
    def _to_record(doc: LiveStream) -> LiveStreamRecord:
        return LiveStreamRecord.model_validate(doc.model_dump(exclude=_DOCUMENT_EXCLUDE))

    async def get(self, stream_id: str) -> LiveStreamRecord | None:
        doc = await LiveStream.find_one(LiveStream.stream_id == stream_id)
        return self._to_record(doc) if doc else None

    async def list_by_user(
        self,
        user_id: str,
        status: LiveStreamStatus | None = None,
    ) -> list[LiveStreamRecord]:
        conditions = [LiveStream.user_id == user_id]
        if status is not None:
            conditions.append(LiveStream.status == status)
        docs = await LiveStream.find(*conditions).sort("-created_at").to_list()
        return [self._to_record(doc) for doc in docs]

    async def list_source_streams(self, app_id: str) -> set[str]:
        docs = await LiveStream.find(LiveStream.app_id == app_id).to_list()
        return {doc.source_stream for doc in docs}

    async def exists_for_app(self, app_id: str) -> bool:
        return await LiveStream.find_one(LiveStream.app_id == app_id) is not None

    async def exists_for_key(self, key_id: str) -> bool:
        return await LiveStream.find_one(LiveStream.key_id == key_id) is not None

    async def insert(self, stream: LiveStreamRecord) -> LiveStreamRecord:
        await LiveStream(**stream.model_dump()).insert()
        return stream

    async def save(self, stream: LiveStreamRecord) -> LiveStreamRecord:
        existing = await LiveStream.find_one(LiveStream.stream_id == stream.stream_id)
        doc = LiveStream(**stream.model_dump())
        if existing:
            doc.id = existing.id
        await doc.save()
        return stream

    async def delete(self, stream_id: str) -> bool:
        result = await LiveStream.find_one(LiveStream.stream_id == stream_id).delete()
        return bool(result and result.deleted_count)
