"""Time source abstraction used for periods, aging and audit timestamps."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a given instant; handy for scripts and tests."""

    def __init__(self, instant: datetime) -> None:
        self.instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta: float) -> None:
        self.instant = self.instant + timedelta(**delta)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_of(value: datetime) -> str:
    """Return the accounting period (``YYYY-MM``) containing ``value``."""

    return value.strftime("%Y-%m")


def days_between(start: datetime, end: datetime) -> int:
    """Whole days elapsed from ``start`` to ``end``."""

    return (ensure_utc(end) - ensure_utc(start)).days
