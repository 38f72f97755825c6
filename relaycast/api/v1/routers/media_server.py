"""Media server diagnostics.

Unlike the lifecycle endpoints, these surface media-control failures as
errors (503/502) since reporting the panel's state is their whole purpose.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from relaycast.api.v1.dependency import CurrentUser
from relaycast.api.v1.schemas.base import ApiOut
from relaycast.services.integrations.media_control import (
    ConnectionTestResult,
    MediaControlClient,
    MediaControlSettings,
    ServerStats,
)

router = APIRouter(prefix="/media-server", tags=["Media Server"])

# Singleton instance
_media_control_client = MediaControlClient(MediaControlSettings.from_app_config())


def get_media_control_client() -> MediaControlClient:
    """Get the singleton MediaControlClient instance."""
    return _media_control_client


class MediaServerStatusOut(BaseModel):
    configured: bool
    panel_domain: str
    connection: ConnectionTestResult


class MediaServerStatsOut(BaseModel):
    active_streams: list[str]
    stats: dict[str, Any]


@router.get("/status")
async def get_status(
    user: CurrentUser,
    client: MediaControlClient = Depends(get_media_control_client),
) -> ApiOut[MediaServerStatusOut]:
    """Test the connection to the media-control panel."""
    connection = await client.test_connection()
    return ApiOut[MediaServerStatusOut](
        results=MediaServerStatusOut(
            configured=client.is_configured,
            panel_domain=client.settings.panel_domain,
            connection=connection,
        )
    )


@router.get("/stats")
async def get_stats(
    user: CurrentUser,
    client: MediaControlClient = Depends(get_media_control_client),
) -> ApiOut[MediaServerStatsOut]:
    """Raw server statistics and the names of streams being ingested."""
    stats: ServerStats = await client.get_server_stats()
    active = [s.name or s.stream for s in stats.streams if s.name or s.stream]
    return ApiOut[MediaServerStatsOut](
        results=MediaServerStatsOut(active_streams=active, stats=stats.model_dump())
    )
