from __future__ import annotations

from datetime import datetime


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def seconds_between(start: datetime, end: datetime) -> int:
    """Whole seconds from start to end, never negative."""
    return max(0, int((end - start).total_seconds()))


def format_hours(seconds: int) -> float:
    return round(int(seconds) / 3600, 2)


def format_minutes(seconds: int) -> float:
    return round(int(seconds) / 60, 2)
