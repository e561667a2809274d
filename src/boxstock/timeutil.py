from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Union

Timestamp = Union[datetime, date, str]


def parse_timestamp(value: Timestamp) -> datetime:
    """Accepts datetimes, dates and ISO-8601 strings (a trailing ``Z`` means UTC)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def as_aware(value: datetime) -> datetime:
    # naive values are local wall-clock time
    if value.tzinfo is None:
        return value.astimezone()
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    return value.isoformat()
