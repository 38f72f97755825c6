"""Tests for MongoDB Extended JSON datetime parsing."""

from datetime import datetime, timezone

import pytest

from relaycast.schemas.schema_utils import parse_mongo_datetime

EXPECTED = datetime(2024, 11, 1, 8, 0, tzinfo=timezone.utc)


class TestParseMongoDatetime:
    @pytest.mark.parametrize(
        "value",
        [
            {"$date": "2024-11-01T08:00:00Z"},
            {"$date": {"$numberLong": "1730448000000"}},
            {"$date": 1730448000000},
        ],
    )
    def test_extended_json_forms(self, value):
        assert parse_mongo_datetime(value) == EXPECTED

    def test_datetime_passes_through(self):
        assert parse_mongo_datetime(EXPECTED) is EXPECTED

    @pytest.mark.parametrize("value", ["2024-11-01", {"other": 1}, {"$date": None}, None])
    def test_other_values_left_for_validation(self, value):
        assert parse_mongo_datetime(value) == value
