"""Calendar arithmetic for publish scheduling."""

from __future__ import annotations

from datetime import datetime, timedelta


def add_days(ts: datetime, days: int) -> datetime:
    """Shift ``ts`` by ``days`` calendar days, keeping the wall-clock time.

    The addition happens on the naive local fields and the original tzinfo is
    re-attached afterwards, so a daylight-saving transition between the two
    dates never moves the time-of-day.  Month and year rollover follow the
    calendar (2024-01-30 + 2 days is 2024-02-01).
    """
    shifted = ts.replace(tzinfo=None) + timedelta(days=days)
    return shifted.replace(tzinfo=ts.tzinfo)


def schedule_for(start_at: datetime, interval_days: int, index: int) -> datetime:
    """Publish time of the ``index``-th article of a batch."""
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    return add_days(start_at, index * interval_days)
