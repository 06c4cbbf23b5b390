"""Time-of-day arithmetic and an injectable clock."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant (tests, replays)."""

    def __init__(self, instant: datetime):
        self._instant = instant if instant.tzinfo else instant.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._instant

    def advance(self, **kwargs) -> None:
        self._instant += timedelta(**kwargs)


def parse_hhmm(value: str) -> time:
    """Parse "08:30" into time(8, 30); raises ValueError on anything else."""
    hours, _, minutes = value.strip().partition(":")
    return time(int(hours), int(minutes or 0))


def format_hhmm(value: time | datetime) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def add_minutes(hhmm: str, minutes: int) -> str:
    """Clock arithmetic on "HH:MM" strings; wraps at midnight."""
    t = parse_hhmm(hhmm)
    total = (t.hour * 60 + t.minute + minutes) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


def combine(day: date, hhmm: str, tz=timezone.utc) -> datetime:
    return datetime.combine(day, parse_hhmm(hhmm), tzinfo=tz)


def js_weekday(day: date) -> int:
    """0 = Sunday .. 6 = Saturday, the convention used by weekly availability entries."""
    return (day.weekday() + 1) % 7


def ensure_aware(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value
