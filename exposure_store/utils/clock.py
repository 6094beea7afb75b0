"""UTC clock helpers."""

from datetime import datetime, timezone
from typing import Callable

from exposure_store.exceptions import InvalidTimestampError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Convert an aware datetime to UTC. Naive values are rejected."""
    if not isinstance(value, datetime) or value.tzinfo is None or value.utcoffset() is None:
        raise InvalidTimestampError(value)
    return value.astimezone(timezone.utc)
