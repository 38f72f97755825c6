"""Ingest identity: RTMP app paths, stream keys and source stream names.

Many logical streams share one physical RTMP ingest point (app path + stream
key). They are told apart by `source_stream`, a short token derived from the
stream title:

    "Morning Yoga Session!!" -> "morningyogasession"
    "@@@"                    -> "stream_3f9a0c1e"

Derivation alone can collapse distinct titles to the same token, so
`StreamIdentityRegistry.allocate_source_stream` checks the sibling streams of
the same app and appends a numeric suffix ("morningyoga2") on collision.
"""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

from loguru import logger

from relaycast.schemas.stream_status import StreamAppStatus
from relaycast.utils.app_errors import AppErrorCode, ConflictError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from ..repositories import LiveStreamRepository, StreamAppRepository, StreamKeyRepository
    from .stream_app_models import StreamAppRecord, StreamKeyRecord

SOURCE_STREAM_MAX_LENGTH = 20
SOURCE_STREAM_FALLBACK_PREFIX = "stream_"

APP_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{2,50}$")
STREAM_KEY_MIN_LENGTH = 8
STREAM_KEY_MAX_LENGTH = 255
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

_NON_ALNUM = re.compile(r"[^a-z0-9]")

PLATFORM_KEY_NAMES = {
    "youtube": "YouTube",
    "twitch": "Twitch",
    "facebook": "Facebook",
    "twitter": "Twitter/X",
    "kick": "Kick",
    "rumble": "Rumble",
}


def normalize_title(title: str | None) -> str:
    """Lower-case, keep only [a-z0-9], truncate. May return an empty string."""
    if not title:
        return ""
    return _NON_ALNUM.sub("", title.lower())[:SOURCE_STREAM_MAX_LENGTH]


def fallback_source_stream() -> str:
    return f"{SOURCE_STREAM_FALLBACK_PREFIX}{secrets.token_hex(4)}"


def derive_source_stream(title: str | None) -> str:
    return normalize_title(title) or fallback_source_stream()


def validate_app_path(path: str | None) -> str:
    if not path or not APP_PATH_PATTERN.match(path):
        raise ValidationError(
            "RTMP app path must be 2-50 characters of letters, digits, '_' or '-'",
            field="rtmp_app_path",
        )
    return path


def validate_stream_key(key: str | None) -> str:
    if not key or not STREAM_KEY_MIN_LENGTH <= len(key) <= STREAM_KEY_MAX_LENGTH:
        raise ValidationError(
            f"Stream key must be {STREAM_KEY_MIN_LENGTH}-{STREAM_KEY_MAX_LENGTH} characters",
            field="stream_key",
        )
    return key


def validate_name(value: str | None, field: str) -> str:
    value = (value or "").strip()
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        raise ValidationError(
            f"{field} must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters",
            field=field,
        )
    return value


def validate_description(value: str | None) -> str | None:
    if value is not None and len(value) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )
    return value


def platform_key_name(platform: str) -> str:
    """Display name used for a key that targets a well-known platform."""
    return PLATFORM_KEY_NAMES.get(platform.lower(), platform.capitalize())


class StreamIdentityRegistry:
    """Resolves ingest credentials and allocates source stream names."""

    def __init__(
        self,
        apps: StreamAppRepository,
        keys: StreamKeyRepository,
        streams: LiveStreamRepository,
        max_attempts: int = 100,
    ):
        self.apps = apps
        self.keys = keys
        self.streams = streams
        self.max_attempts = max_attempts

    async def get_owned_app(self, app_id: str, user_id: str) -> StreamAppRecord:
        app = await self.apps.get(app_id)
        if app is None or app.user_id != user_id:
            raise NotFoundError(
                f"Stream app not found: {app_id}",
                errcode=AppErrorCode.E_STREAM_APP_NOT_FOUND,
            )
        return app

    async def get_app_key(self, app: StreamAppRecord, key_id: str) -> StreamKeyRecord:
        key = await self.keys.get(key_id)
        if key is None or key.app_id != app.app_id:
            raise NotFoundError(
                f"Stream key not found: {key_id}",
                errcode=AppErrorCode.E_STREAM_KEY_NOT_FOUND,
            )
        return key

    async def resolve_ingest(
        self,
        user_id: str,
        app_id: str,
        key_id: str,
    ) -> tuple[StreamAppRecord, StreamKeyRecord]:
        """Ownership-checked (app, key) pair usable for a new stream."""
        app = await self.get_owned_app(app_id, user_id)
        if app.status != StreamAppStatus.ACTIVE:
            raise ConflictError(
                f"Stream app is inactive: {app_id}",
                errcode=AppErrorCode.E_STREAM_APP_INACTIVE,
            )

        key = await self.get_app_key(app, key_id)
        if not key.is_active:
            raise ValidationError(f"Stream key is inactive: {key_id}", field="key_id")
        return app, key

    async def allocate_source_stream(self, app_id: str, title: str | None) -> str:
        """Derive a source stream name unused by sibling streams of `app_id`.

        Callers must hold the app's creation lock, otherwise two concurrent
        allocations may pick the same name.
        """
        taken = await self.streams.list_source_streams(app_id)
        base = normalize_title(title)

        if not base:
            for _ in range(self.max_attempts):
                candidate = fallback_source_stream()
                if candidate not in taken:
                    return candidate
        elif base not in taken:
            return base
        else:
            for n in range(2, self.max_attempts + 2):
                suffix = str(n)
                candidate = base[: SOURCE_STREAM_MAX_LENGTH - len(suffix)] + suffix
                if candidate not in taken:
                    logger.debug(f"Source stream {base} taken in app {app_id}, using {candidate}")
                    return candidate

        raise ConflictError(f"Could not allocate a unique source stream for app {app_id}")
