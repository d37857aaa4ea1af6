"""
Reporting period helpers.

- format_ga_date: normalize the API's YYYYMMDD date dimension to YYYY-MM-DD
- resolve_relative_date: turn "today" / "yesterday" / "NdaysAgo" into a date
- get_last_complete_week: default Monday-Sunday window for weekly reports
- get_same_week_last_year: shift a window back one calendar year

All functions take `today` explicitly (defaulting to date.today()) so the
weekly boundaries are reproducible in tests.
"""

import re
from datetime import date, timedelta
from typing import Optional

from pulse.models.schemas import DateRange

_DAYS_AGO_PATTERN = re.compile(r'^(\d+)daysAgo$')


def format_ga_date(value: str) -> str:
    """
    Normalize an Analytics date dimension value.

    "20240115" -> "2024-01-15". Anything that is not exactly 8 characters,
    including already-formatted dates, passes through unchanged.
    """
    if len(value) == 8:
        return f"{value[0:4]}-{value[4:6]}-{value[6:8]}"
    return value


def resolve_relative_date(value: str, today: Optional[date] = None) -> date:
    """
    Resolve an ISO date or relative token to a calendar date.

    Supports "today", "yesterday", "NdaysAgo" and YYYY-MM-DD.

    Raises:
        ValueError: If the value is neither a known token nor an ISO date.
    """
    today = today or date.today()
    token = value.strip()

    if token == 'today':
        return today
    if token == 'yesterday':
        return today - timedelta(days=1)

    match = _DAYS_AGO_PATTERN.match(token)
    if match:
        return today - timedelta(days=int(match.group(1)))

    return date.fromisoformat(token)


def get_last_complete_week(today: Optional[date] = None) -> DateRange:
    """
    Last complete Monday-Sunday week.

    The end is today when today is a Sunday, otherwise the most recent
    Sunday before today; the start is the Monday six days earlier.

    Example:
        >>> get_last_complete_week(date(2024, 1, 17))  # Wednesday
        DateRange(startDate='2024-01-08', endDate='2024-01-14')
    """
    today = today or date.today()
    # Monday=0 ... Sunday=6
    days_since_sunday = (today.weekday() + 1) % 7
    last_sunday = today - timedelta(days=days_since_sunday)
    last_monday = last_sunday - timedelta(days=6)

    return DateRange(startDate=last_monday.isoformat(), endDate=last_sunday.isoformat())


def _shift_back_one_year(value: date) -> date:
    """Same month/day one year earlier; Feb 29 rolls over to Mar 1."""
    try:
        return value.replace(year=value.year - 1)
    except ValueError:
        return date(value.year - 1, 3, 1)


def get_same_week_last_year(date_range: DateRange, today: Optional[date] = None) -> DateRange:
    """
    Shift both boundaries back exactly one calendar year.

    This is a calendar-year shift, not 52 weeks, so the weekday alignment can
    move by one or two days. Relative tokens are resolved against `today`
    before shifting.

    Example:
        >>> get_same_week_last_year(DateRange(startDate='2024-01-08', endDate='2024-01-14'))
        DateRange(startDate='2023-01-08', endDate='2023-01-14')
    """
    start = resolve_relative_date(date_range.startDate, today)
    end = resolve_relative_date(date_range.endDate, today)

    return DateRange(
        startDate=_shift_back_one_year(start).isoformat(),
        endDate=_shift_back_one_year(end).isoformat(),
    )
