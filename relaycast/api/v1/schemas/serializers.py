"""Datetime types for API output models.

Stream and key timestamps are stored as UTC but may come back from MongoDB
naive; these types always render them with an explicit `+00:00` offset.
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import PlainSerializer


def serialize_utc_datetime(dt: datetime) -> str:
    """Serialize datetime as ISO 8601 string with UTC timezone.

    Naive values are assumed to be UTC.
    Output format: 2025-12-03T10:30:00+00:00
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def serialize_optional_utc_datetime(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return serialize_utc_datetime(dt)


UtcDatetime = Annotated[datetime, PlainSerializer(serialize_utc_datetime, return_type=str)]
OptionalUtcDatetime = Annotated[
    datetime | None,
    PlainSerializer(serialize_optional_utc_datetime, return_type=str | None),
]
