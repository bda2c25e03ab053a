"""Public holiday calendar and working-day counting.

Holiday table (fixed jurisdiction, no regional variants):
  - Fixed dates: Jan 1, May 1, Oct 3, Oct 31, Dec 25, Dec 26
  - Easter-relative: Good Friday (-2), Easter Sunday, Easter Monday (+1),
    Ascension (+39), Whit Monday (+50)

All functions operate on calendar days. ``datetime`` inputs are truncated
to their local date before any comparison.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Optional, Union

DayLike = Union[date, datetime]

FIXED_HOLIDAYS: dict[tuple[int, int], str] = {
    (1, 1): "Neujahr",
    (5, 1): "Tag der Arbeit",
    (10, 3): "Tag der Deutschen Einheit",
    (10, 31): "Reformationstag",
    (12, 25): "1. Weihnachtstag",
    (12, 26): "2. Weihnachtstag",
}

# Offsets in days relative to Easter Sunday.
EASTER_HOLIDAYS: tuple[tuple[int, str], ...] = (
    (-2, "Karfreitag"),
    (0, "Ostersonntag"),
    (1, "Ostermontag"),
    (39, "Christi Himmelfahrt"),
    (50, "Pfingstmontag"),
)


def to_day(value: DayLike) -> date:
    """Normalize a date or datetime to a plain calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def easter_sunday(year: int) -> date:
    """Gregorian Easter Sunday (Meeus/Jones/Butcher)."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


@lru_cache(maxsize=64)
def _movable_holidays(year: int) -> dict[date, str]:
    easter = easter_sunday(year)
    return {
        easter + timedelta(days=offset): name
        for offset, name in EASTER_HOLIDAYS
    }


def holiday_name(value: DayLike) -> Optional[str]:
    """Return the holiday's name, or None for an ordinary day.

    Fixed-date holidays take precedence if a movable one falls on the
    same day.
    """
    day = to_day(value)
    fixed = FIXED_HOLIDAYS.get((day.month, day.day))
    if fixed is not None:
        return fixed
    return _movable_holidays(day.year).get(day)


def is_holiday(value: DayLike) -> bool:
    return holiday_name(value) is not None


def holidays_for_year(year: int) -> list[tuple[date, str]]:
    """All holidays of *year*, ordered by date."""
    entries = {
        date(year, month, dom): name
        for (month, dom), name in FIXED_HOLIDAYS.items()
    }
    for day, name in _movable_holidays(year).items():
        entries.setdefault(day, name)
    return sorted(entries.items())


def is_working_day(value: DayLike) -> bool:
    """Monday–Friday and not a public holiday."""
    day = to_day(value)
    return day.weekday() < 5 and not is_holiday(day)


def working_days(start: DayLike, end: DayLike) -> int:
    """Count working days in the inclusive range [start, end].

    Returns 0 when *end* precedes *start*.
    """
    current = to_day(start)
    last = to_day(end)
    count = 0
    while current <= last:
        if is_working_day(current):
            count += 1
        current += timedelta(days=1)
    return count
