"""Tests for source stream derivation and ingest identity rules."""

import re
from datetime import UTC, datetime

import pytest

from relaycast.domain.live.stream.stream_models import LiveStreamRecord
from relaycast.domain.live.stream_app.stream_identity import (
    StreamIdentityRegistry,
    derive_source_stream,
    normalize_title,
    platform_key_name,
    validate_app_path,
    validate_stream_key,
)
from relaycast.schemas import StreamAppStatus
from relaycast.utils.app_errors import ConflictError, NotFoundError, ValidationError
from tests.fixtures.live_fixtures import OTHER_USER_ID, OWNER_ID

FALLBACK_PATTERN = re.compile(r"^stream_[0-9a-f]{8}$")


def _stream(stream_id: str, app_id: str, source_stream: str) -> LiveStreamRecord:
    now = datetime.now(UTC)
    return LiveStreamRecord(
        stream_id=stream_id,
        user_id=OWNER_ID,
        title=source_stream,
        app_id=app_id,
        key_id="sk_1",
        source_app="live",
        source_stream=source_stream,
        created_at=now,
        updated_at=now,
    )


class TestDeriveSourceStream:
    def test_strips_punctuation_and_case(self):
        """Test that a title keeps only lower-case letters and digits."""
        assert derive_source_stream("Morning Yoga Session!!") == "morningyogasession"

    def test_truncates_to_twenty_characters(self):
        result = derive_source_stream("A Very Long Broadcast Title For Testing 2024")
        assert result == "averylongbroadcastti"
        assert len(result) == 20

    @pytest.mark.parametrize("title", ["@@@", "###", "", None, "!!! ???"])
    def test_fallback_for_empty_normalization(self, title):
        """Test that titles without usable characters get a random token."""
        assert FALLBACK_PATTERN.match(derive_source_stream(title))

    def test_fallback_tokens_differ(self):
        """Test that two symbol-only titles do not share a source stream."""
        assert derive_source_stream("@@@") != derive_source_stream("###")

    def test_normalize_title_can_be_empty(self):
        assert normalize_title("***") == ""

    @pytest.mark.parametrize(
        "title", ["Live Show", "Show #1 (Redux)", "ÜBER stream", "x" * 300, "123"]
    )
    def test_always_short_and_alphanumeric(self, title):
        result = derive_source_stream(title)
        assert len(result) <= 20
        assert re.fullmatch(r"[a-z0-9_]+", result)


class TestValidators:
    @pytest.mark.parametrize("path", ["live", "my_app", "studio-2", "ab", "a" * 50])
    def test_valid_app_paths(self, path):
        assert validate_app_path(path) == path

    @pytest.mark.parametrize("path", ["", "a", "a" * 51, "has space", "slash/path", "dot.app", None])
    def test_invalid_app_paths(self, path):
        with pytest.raises(ValidationError) as exc_info:
            validate_app_path(path)
        assert exc_info.value.field == "rtmp_app_path"

    @pytest.mark.parametrize("key", ["12345678", "k" * 255])
    def test_stream_key_bounds_accepted(self, key):
        assert validate_stream_key(key) == key

    @pytest.mark.parametrize("key", ["1234567", "k" * 256, "", None])
    def test_stream_key_bounds_rejected(self, key):
        with pytest.raises(ValidationError):
            validate_stream_key(key)


class TestPlatformKeyName:
    def test_known_platforms(self):
        assert platform_key_name("youtube") == "YouTube"
        assert platform_key_name("Twitch") == "Twitch"
        assert platform_key_name("twitter") == "Twitter/X"

    def test_unknown_platform_is_capitalized(self):
        assert platform_key_name("peertube") == "Peertube"


class TestAllocateSourceStream:
    @pytest.fixture
    def registry(self, app_repo, key_repo, stream_repo) -> StreamIdentityRegistry:
        return StreamIdentityRegistry(app_repo, key_repo, stream_repo)

    async def test_free_name_used_as_is(self, registry):
        assert await registry.allocate_source_stream("sa_1", "Morning Yoga") == "morningyoga"

    async def test_collision_gets_numeric_suffix(self, registry, stream_repo):
        """Test that sibling streams of the same app never share a source stream."""
        await stream_repo.insert(_stream("ls_1", "sa_1", "morningyoga"))
        await stream_repo.insert(_stream("ls_2", "sa_1", "morningyoga2"))

        assert await registry.allocate_source_stream("sa_1", "Morning Yoga!") == "morningyoga3"

    async def test_collision_suffix_respects_max_length(self, registry, stream_repo):
        await stream_repo.insert(_stream("ls_1", "sa_1", "averylongbroadcastti"))

        result = await registry.allocate_source_stream("sa_1", "A Very Long Broadcast Title")

        assert result == "averylongbroadcastt2"
        assert len(result) == 20

    async def test_other_apps_do_not_collide(self, registry, stream_repo):
        await stream_repo.insert(_stream("ls_1", "sa_other", "morningyoga"))

        assert await registry.allocate_source_stream("sa_1", "Morning Yoga") == "morningyoga"

    async def test_exhausted_attempts_raise_conflict(self, app_repo, key_repo, stream_repo):
        registry = StreamIdentityRegistry(app_repo, key_repo, stream_repo, max_attempts=2)
        for i, name in enumerate(["yoga", "yoga2", "yoga3"]):
            await stream_repo.insert(_stream(f"ls_{i}", "sa_1", name))

        with pytest.raises(ConflictError):
            await registry.allocate_source_stream("sa_1", "Yoga")


class TestResolveIngest:
    @pytest.fixture
    def registry(self, app_service) -> StreamIdentityRegistry:
        return app_service.identity

    async def test_owned_app_and_key(self, registry, ingest_app):
        key_id = ingest_app.keys[0].key_id

        app, key = await registry.resolve_ingest(OWNER_ID, ingest_app.app.app_id, key_id)

        assert app.app_id == ingest_app.app.app_id
        assert key.key_id == key_id

    async def test_foreign_app_is_not_found(self, registry, ingest_app):
        with pytest.raises(NotFoundError):
            await registry.resolve_ingest(
                OTHER_USER_ID, ingest_app.app.app_id, ingest_app.keys[0].key_id
            )

    async def test_key_from_other_app_is_not_found(self, registry, ingest_app):
        with pytest.raises(NotFoundError):
            await registry.resolve_ingest(OWNER_ID, ingest_app.app.app_id, "sk_missing")

    async def test_inactive_app_is_rejected(self, registry, ingest_app, app_repo):
        app = ingest_app.app.model_copy(update={"status": StreamAppStatus.INACTIVE})
        await app_repo.save(app)

        with pytest.raises(ConflictError):
            await registry.resolve_ingest(OWNER_ID, app.app_id, ingest_app.keys[0].key_id)

    async def test_inactive_key_is_rejected(self, registry, ingest_app, key_repo):
        key = ingest_app.keys[0].model_copy(update={"is_active": False})
        await key_repo.save(key)

        with pytest.raises(ValidationError):
            await registry.resolve_ingest(OWNER_ID, ingest_app.app.app_id, key.key_id)
