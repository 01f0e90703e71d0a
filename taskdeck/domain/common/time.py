from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Optional


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt


def to_iso(dt: datetime) -> str:
    ensure_aware(dt)
    # store as ISO 8601 with offset
    return dt.isoformat()


def from_iso(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def opt_from_iso(s: Optional[str]) -> Optional[datetime]:
    return from_iso(s) if s else None


def local_date(dt: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of `dt` in `tz` (time of day ignored)."""
    if tz is not None and dt.tzinfo is not None:
        dt = dt.astimezone(tz)
    return dt.date()


def date_key(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def week_start(d: date) -> date:
    """Monday of the week containing `d`."""
    return d - timedelta(days=d.weekday())


def next_midnight(now: datetime) -> datetime:
    tomorrow = now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, datetime.min.time(), tzinfo=now.tzinfo)
