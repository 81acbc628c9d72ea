"""
Working-day calendar for day-by-day settling.
"""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta

from core.config import TARGET_HOURS, UNFILLED_LOOKBACK_DAYS


def nth_weekday(year: int, month: int, weekday: int, n: int) -> date:
    """n-th given weekday of a month (n=1 is the first)."""
    first = date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + timedelta(days=offset + 7 * (n - 1))


def last_weekday(year: int, month: int, weekday: int) -> date:
    last = date(year, month, calendar.monthrange(year, month)[1])
    return last - timedelta(days=(last.weekday() - weekday) % 7)


def us_holidays(year: int) -> set[date]:
    """Federal holidays observed by the portal's US calendar (not shifted for weekends)."""
    return {
        date(year, 1, 1),
        nth_weekday(year, 1, calendar.MONDAY, 3),  # MLK Day
        last_weekday(year, 5, calendar.MONDAY),  # Memorial Day
        date(year, 7, 4),
        nth_weekday(year, 9, calendar.MONDAY, 1),  # Labor Day
        nth_weekday(year, 11, calendar.THURSDAY, 4),  # Thanksgiving
        date(year, 12, 25),
    }


def is_us_holiday(day: date) -> bool:
    return day in us_holidays(day.year)


def is_working_day(day: date) -> bool:
    return day.weekday() < 5 and not is_us_holiday(day)


def find_unfilled_days(
    entry_dates: Iterable[date],
    logged_hours_by_day: dict[date, float],
    target: float = TARGET_HOURS,
) -> list[date]:
    """
    Working days that have Chrono entries but fewer than target hours in the portal.

    Returns:
        Sorted, distinct days
    """
    return [
        day
        for day in sorted(set(entry_dates))
        if logged_hours_by_day.get(day, 0.0) < target and is_working_day(day)
    ]


def unfilled_window(today: date, lookback_days: int = UNFILLED_LOOKBACK_DAYS) -> tuple[date, date]:
    return today - timedelta(days=lookback_days), today
