from __future__ import annotations

import calendar
from datetime import date, datetime, time


def parse_clock(value: str) -> time:
    """Parse "HH:MM", "HH:MM:SS" or 12-hour "h:mm AM" into a time."""
    v = (value or "").strip().upper()
    for fmt in ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, floored (negative if end < start)."""
    return int((end - start).total_seconds() // 60)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]
