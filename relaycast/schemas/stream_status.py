"""Common enums used across schemas."""

from enum import Enum


class LiveStreamStatus(str, Enum):
    """Logical stream lifecycle states.

    inactive → live (start) → inactive (stop)
                    live → ended (end)
    ended → live (start)

    - INACTIVE: Defined but not republishing. Initial state, and the state
      `stop` returns to so the stream can be started again.
    - LIVE: Republishing rules requested on the media server.
    - ENDED: Broadcast finished. Still restartable.
    """

    INACTIVE = "inactive"
    LIVE = "live"
    ENDED = "ended"

    def __str__(self) -> str:
        return self.value


class StreamAppStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

    def __str__(self) -> str:
        return self.value


class RepublishingStatus(str, Enum):
    CONFIGURED = "configured"
    MANUAL_REQUIRED = "manual_required"

    def __str__(self) -> str:
        return self.value


__all__ = ["LiveStreamStatus", "RepublishingStatus", "StreamAppStatus"]
