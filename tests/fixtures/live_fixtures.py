"""Service fixtures wired to in-memory repositories and the fake panel."""

import pytest

from relaycast.domain.live.stream._republishing import RepublishingCoordinator
from relaycast.domain.live.stream.stream_domain import StreamLifecycleManager
from relaycast.domain.live.stream_app.stream_app_domain import StreamAppService
from relaycast.domain.live.stream_app.stream_app_models import StreamAppCreateParams
from relaycast.services.integrations.media_control import MediaControlClient

OWNER_ID = "user_123"
OTHER_USER_ID = "user_999"
PRIMARY_STREAM_KEY = "primary-key-0001"


@pytest.fixture
def app_service(app_repo, key_repo, stream_repo) -> StreamAppService:
    return StreamAppService(apps=app_repo, keys=key_repo, streams=stream_repo)


@pytest.fixture
def coordinator(media_client: MediaControlClient) -> RepublishingCoordinator:
    return RepublishingCoordinator(media_client)


@pytest.fixture
def stream_manager(app_repo, key_repo, stream_repo, coordinator) -> StreamLifecycleManager:
    return StreamLifecycleManager(
        streams=stream_repo,
        apps=app_repo,
        keys=key_repo,
        coordinator=coordinator,
    )


@pytest.fixture
async def ingest_app(app_service: StreamAppService):
    """Active stream app `live` with its auto-created primary key."""
    return await app_service.create_app(
        StreamAppCreateParams(
            user_id=OWNER_ID,
            app_name="Main Studio",
            rtmp_app_path="live",
            default_stream_key=PRIMARY_STREAM_KEY,
        )
    )
