from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Iterator, Union

ClockValue = Union[str, time, datetime]

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_clock_time(value: ClockValue) -> time:
    """Parse "HH:MM", "HH:MM:SS" or "hh:mm AM/PM" into a time.

    12 AM maps to hour 0 and 12 PM stays hour 12.
    """

    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value

    m = _CLOCK_RE.match(str(value or ""))
    if not m:
        raise ValueError(f"Invalid clock time: {value!r}")

    hours, minutes = int(m.group(1)), int(m.group(2))
    seconds = int(m.group(3) or 0)
    period = (m.group(4) or "").upper()
    if period:
        if not 1 <= hours <= 12:
            raise ValueError(f"Invalid 12-hour clock time: {value!r}")
        if period == "AM":
            hours = 0 if hours == 12 else hours
        else:
            hours = 12 if hours == 12 else hours + 12
    return time(hour=hours, minute=minutes, second=seconds)


def to_minute_of_day(value: ClockValue) -> int:
    t = parse_clock_time(value)
    return t.hour * 60 + t.minute


def js_weekday(day: date) -> int:
    """Weekday with Sunday=0 .. Saturday=6, as stored in working-day settings."""
    return day.isoweekday() % 7


def weekday_occurrence(day: date) -> int:
    """How many times day's weekday has occurred in its month up to and including day."""
    return (day.day - 1) // 7 + 1


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last)
