"""Tests for API datetime serialization."""

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel

from relaycast.api.v1.schemas.serializers import OptionalUtcDatetime, UtcDatetime


class _Stamped(BaseModel):
    created_at: UtcDatetime
    ended_at: OptionalUtcDatetime = None


class TestUtcDatetime:
    def test_naive_value_is_treated_as_utc(self):
        out = _Stamped(created_at=datetime(2025, 12, 3, 10, 30)).model_dump(mode="json")

        assert out == {"created_at": "2025-12-03T10:30:00+00:00", "ended_at": None}

    def test_offset_value_is_converted_to_utc(self):
        local = datetime(2025, 12, 3, 12, 30, tzinfo=timezone(timedelta(hours=2)))

        out = _Stamped(created_at=local, ended_at=local).model_dump(mode="json")

        assert out["created_at"] == "2025-12-03T10:30:00+00:00"
        assert out["ended_at"] == "2025-12-03T10:30:00+00:00"
