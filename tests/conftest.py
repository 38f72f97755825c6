import os
import warnings

warnings.filterwarnings("ignore", category=DeprecationWarning, module="beanie.*")

# Set test environment variables before relaycast reads its config
os.environ.update(
    {
        "AUTH_JWT_SECRET": "test-jwt-secret",
        "MEDIA_PANEL_UUID": "",
        "MEDIA_PANEL_SECRET": "",
        "MEDIA_SERVER_HOST": "ingest.test",
        "MEDIA_SERVER_RTMP_PORT": "1935",
    }
)

from tests.fixtures.media_control import *  # noqa: E402, F403
from tests.fixtures.memory_repositories import *  # noqa: E402, F403
from tests.fixtures.live_fixtures import *  # noqa: E402, F403
