"""Calendar helpers shared by the ledger and the alert scheduler."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Protocol

# Monday to Saturday, ``date.weekday()`` numbering
ALERTABLE_WEEKDAYS: frozenset[int] = frozenset({0, 1, 2, 3, 4, 5})


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def local_now(now: datetime, tz: tzinfo) -> datetime:
    if now.tzinfo is None:
        raise ValueError("Clock values must include timezone information")
    return now.astimezone(tz)


def local_today(now: datetime, tz: tzinfo) -> date:
    return local_now(now, tz).date()


def is_alertable_weekday(day: date, weekdays: frozenset[int]) -> bool:
    return day.weekday() in weekdays


def days_before(day: date, count: int = 1) -> date:
    return day - timedelta(days=count)


__all__ = [
    "ALERTABLE_WEEKDAYS",
    "Clock",
    "days_before",
    "is_alertable_weekday",
    "local_now",
    "local_today",
    "utcnow",
]
