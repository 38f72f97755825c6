"""In-memory repositories for domain tests.

Records are deep-copied on the way in and out so tests observe persistence
the same way they would against MongoDB.
"""

from datetime import datetime

import pytest

from relaycast.domain.live.repositories import (
    LiveStreamRepository,
    StreamAppRepository,
    StreamKeyRepository,
)
from relaycast.domain.live.stream.stream_models import LiveStreamRecord
from relaycast.domain.live.stream_app.stream_app_models import StreamAppRecord, StreamKeyRecord
from relaycast.schemas import LiveStreamStatus


class InMemoryStreamAppRepository(StreamAppRepository):
    def __init__(self):
        self.items: dict[str, StreamAppRecord] = {}

    async def get(self, app_id: str) -> StreamAppRecord | None:
        app = self.items.get(app_id)
        return app.model_copy(deep=True) if app else None

    async def list_by_user(self, user_id: str) -> list[StreamAppRecord]:
        apps = [a for a in self.items.values() if a.user_id == user_id]
        apps.sort(key=lambda a: a.created_at, reverse=True)
        return [a.model_copy(deep=True) for a in apps]

    async def find_by_path(self, user_id: str, rtmp_app_path: str) -> StreamAppRecord | None:
        for app in self.items.values():
            if app.user_id == user_id and app.rtmp_app_path == rtmp_app_path:
                return app.model_copy(deep=True)
        return None

    async def find_by_name(self, user_id: str, app_name: str) -> StreamAppRecord | None:
        for app in self.items.values():
            if app.user_id == user_id and app.app_name == app_name:
                return app.model_copy(deep=True)
        return None

    async def insert(self, app: StreamAppRecord) -> StreamAppRecord:
        self.items[app.app_id] = app.model_copy(deep=True)
        return app

    async def save(self, app: StreamAppRecord) -> StreamAppRecord:
        self.items[app.app_id] = app.model_copy(deep=True)
        return app

    async def delete(self, app_id: str) -> bool:
        return self.items.pop(app_id, None) is not None


class InMemoryStreamKeyRepository(StreamKeyRepository):
    def __init__(self):
        self.items: dict[str, StreamKeyRecord] = {}

    async def get(self, key_id: str) -> StreamKeyRecord | None:
        key = self.items.get(key_id)
        return key.model_copy(deep=True) if key else None

    async def list_by_app(self, app_id: str, active_only: bool = False) -> list[StreamKeyRecord]:
        keys = [k for k in self.items.values() if k.app_id == app_id]
        if active_only:
            keys = [k for k in keys if k.is_active]
            keys.sort(key=lambda k: (k.usage_count, k.created_at))
        else:
            keys.sort(key=lambda k: k.created_at)
        return [k.model_copy(deep=True) for k in keys]

    async def find_by_name(self, app_id: str, key_name: str) -> StreamKeyRecord | None:
        for key in self.items.values():
            if key.app_id == app_id and key.key_name == key_name:
                return key.model_copy(deep=True)
        return None

    async def insert(self, key: StreamKeyRecord) -> StreamKeyRecord:
        self.items[key.key_id] = key.model_copy(deep=True)
        return key

    async def save(self, key: StreamKeyRecord) -> StreamKeyRecord:
        self.items[key.key_id] = key.model_copy(deep=True)
        return key

    async def delete(self, key_id: str) -> bool:
        return self.items.pop(key_id, None) is not None

    async def delete_by_app(self, app_id: str) -> int:
        doomed = [k for k, v in self.items.items() if v.app_id == app_id]
        for key_id in doomed:
            del self.items[key_id]
        return len(doomed)

    async def record_usage(self, key_id: str, used_at: datetime) -> None:
        key = self.items.get(key_id)
        if key is not None:
            key.usage_count += 1
            key.last_used_at = used_at
            key.updated_at = used_at


class InMemoryLiveStreamRepository(LiveStreamRepository):
    def __init__(self):
        self.items: dict[str, LiveStreamRecord] = {}

    async def get(self, stream_id: str) -> LiveStreamRecord | None:
        stream = self.items.get(stream_id)
        return stream.model_copy(deep=True) if stream else None

    async def list_by_user(
        self,
        user_id: str,
        status: LiveStreamStatus | None = None,
    ) -> list[LiveStreamRecord]:
        streams = [s for s in self.items.values() if s.user_id == user_id]
        if status is not None:
            streams = [s for s in streams if s.status == status]
        streams.sort(key=lambda s: s.created_at, reverse=True)
        return [s.model_copy(deep=True) for s in streams]

    async def list_source_streams(self, app_id: str) -> set[str]:
        return {s.source_stream for s in self.items.values() if s.app_id == app_id}

    async def exists_for_app(self, app_id: str) -> bool:
        return any(s.app_id == app_id for s in self.items.values())

    async def exists_for_key(self, key_id: str) -> bool:
        return any(s.key_id == key_id for s in self.items.values())

    async def insert(self, stream: LiveStreamRecord) -> LiveStreamRecord:
        self.items[stream.stream_id] = stream.model_copy(deep=True)
        return stream

    async def save(self, stream: LiveStreamRecord) -> LiveStreamRecord:
        self.items[stream.stream_id] = stream.model_copy(deep=True)
        return stream

    async def delete(self, stream_id: str) -> bool:
        return self.items.pop(stream_id, None) is not None


@pytest.fixture
def app_repo() -> InMemoryStreamAppRepository:
    return InMemoryStreamAppRepository()


@pytest.fixture
def key_repo() -> InMemoryStreamKeyRepository:
    return InMemoryStreamKeyRepository()


@pytest.fixture
def stream_repo() -> InMemoryLiveStreamRepository:
    return InMemoryLiveStreamRepository()
