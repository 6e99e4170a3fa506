"""
Domain time utilities (pure).

Every timestamp that crosses the domain boundary is timezone-aware UTC.
Supabase and Postgres hand timestamps back as ISO-8601 strings (sometimes with
a trailing 'Z') or as datetimes; both are normalized here.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforce that a timestamp is timezone-aware and has UTC offset 0.

    Raises:
        ValueError: naming the offending field
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a database timestamp into an aware UTC datetime.

    Naive values are assumed to already be UTC.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_optional_utc_datetime(value: Any) -> datetime | None:
    return parse_utc_datetime(value) if value else None
