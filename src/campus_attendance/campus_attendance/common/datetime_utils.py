from __future__ import annotations

from datetime import date, datetime, time


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def on_day(day: date, at: time) -> datetime:
    """Anchor a schedule's time-of-day onto a concrete calendar day."""
    return datetime.combine(day, at)
