"""
UTC datetime utilities for consistent expiry comparisons.

All datetime values in the engine are timezone-aware UTC. A resolution
takes one `now` snapshot and compares every expiry against it.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Use this instead of datetime.now() (naive, local timezone) or
    datetime.utcnow() (naive, deprecated in Python 3.12).

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def has_expired(expires_at: datetime | None, now: datetime) -> bool:
    """
    Return True iff expires_at is set and is at or before now.

    A null expiry never expires. Both values are normalized to UTC first
    so naive timestamps loaded from storage compare correctly.
    """
    if expires_at is None:
        return False
    return ensure_utc(expires_at) <= ensure_utc(now)
