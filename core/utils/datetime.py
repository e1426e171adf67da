"""Datetime utilities for common operations."""

from datetime import datetime, date, time, timedelta, timezone
import math

SECONDS_PER_DAY = 86400


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | date) -> datetime:
    """
    Normalise a date or datetime to an aware UTC datetime.

    SQLite hands back naive datetimes for ``DateTime(timezone=True)``
    columns; values are always written in UTC, so naive means UTC.

    Args:
        dt: Date or datetime, naive or aware

    Returns:
        Timezone-aware datetime in UTC
    """
    if not isinstance(dt, datetime):
        dt = datetime.combine(dt, time.min)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_elapsed(start: datetime | date, end: datetime | None = None) -> int:
    """
    Whole days between two instants, rounded up.

    Args:
        start: Earlier (or later) instant
        end: Other instant, defaults to now

    Returns:
        ceil(|end - start| / 1 day), never negative
    """
    end = ensure_utc(end) if end is not None else now()
    seconds = abs((end - ensure_utc(start)).total_seconds())
    return math.ceil(seconds / SECONDS_PER_DAY)


def fractional_days_between(start: datetime, end: datetime) -> float:
    """
    Calculate the (fractional) number of days between two datetimes.

    Args:
        start: Start datetime
        end: End datetime

    Returns:
        Number of days, negative if end precedes start
    """
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / SECONDS_PER_DAY


def days_ago(days: int, reference: datetime | None = None) -> datetime:
    """Instant ``days`` days before ``reference`` (default now)."""
    reference = ensure_utc(reference) if reference is not None else now()
    return reference - timedelta(days=days)

