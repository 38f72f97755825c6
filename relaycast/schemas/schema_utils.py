"""Shared utilities for schema validation."""

from datetime import datetime, timezone
from typing import Any


def _from_epoch_ms(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def parse_mongo_datetime(v: Any) -> Any:
    """Parse MongoDB Extended JSON datetimes, or return the value as-is.

    Streams and apps seeded with mongoimport carry one of:
        {'$date': '2024-11-01T08:00:00Z'}               relaxed mode
        {'$date': {'$numberLong': '1730448000000'}}     canonical mode
        {'$date': 1730448000000}                        legacy epoch millis
    """
    if isinstance(v, datetime):
        return v
    if not isinstance(v, dict) or "$date" not in v:
        return v

    raw = v["$date"]
    if isinstance(raw, str):
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if isinstance(raw, dict) and "$numberLong" in raw:
        return _from_epoch_ms(raw["$numberLong"])
    if isinstance(raw, int | float):
        return _from_epoch_ms(raw)
    return v
