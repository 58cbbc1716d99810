"""Canonical calendar-day helpers.

All "today" computations go through here so the scoreboard, the leaderboard
and the daily cap agree on where a day starts and ends.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    # Naive values come back from SQLite; they were written as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_date(dt: datetime, tz_name: str) -> date:
    return as_utc(dt).astimezone(ZoneInfo(tz_name)).date()


def day_key(dt: datetime, tz_name: str) -> str:
    """Return the canonical ``YYYY-MM-DD`` bucket of an instant."""
    return local_date(dt, tz_name).isoformat()


def today_key(tz_name: str, now: datetime | None = None) -> str:
    return day_key(now or utcnow(), tz_name)
