"""Errors raised by the media-control client.

The client never decides fallback behavior; callers catch `MediaControlError`
and choose what to do with it.
"""


class MediaControlError(Exception):
    """Base class for every failure talking to the media-control panel."""

    reason = "media_control_error"


class ConfigurationError(MediaControlError):
    """The panel UUID or shared secret is missing; nothing was sent."""

    reason = "not_configured"


class TransportError(MediaControlError):
    """Network failure or timeout before a response was received."""

    reason = "unreachable"


class RemoteRejectionError(MediaControlError):
    """The panel answered with a non-2xx status or an unreadable body."""

    reason = "rejected"

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
