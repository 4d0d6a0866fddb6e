# slotgrid/util/dates.py
"""Calendar-date stepping for day/week/month views.

Dates are plain `datetime.date` values (or YYYY-MM-DD strings); weeks start on
Monday.
"""

from __future__ import annotations

import calendar
import datetime as dt
from typing import List, Tuple, Union

from .timeparse import parse_date_yyyy_mm_dd

PERIODS = ("day", "week", "month")

DateLike = Union[str, dt.date]


def as_date(d: DateLike) -> dt.date:
    if isinstance(d, dt.datetime):
        return d.date()
    if isinstance(d, dt.date):
        return d
    return parse_date_yyyy_mm_dd(str(d))


def week_start(d: DateLike) -> dt.date:
    """Monday of the week containing `d`."""
    dd = as_date(d)
    return dd - dt.timedelta(days=dd.weekday())


def _check_period(period: str) -> None:
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period!r} (expected one of {', '.join(PERIODS)})")


def navigate_date(d: DateLike, period: str, direction: int) -> dt.date:
    """Step one period forwards (direction=1) or backwards (direction=-1).

    - day: +/- 1 day
    - week: jump to the Monday of the next/previous week
    - month: +/- 1 calendar month, day clamped to the month length
    """
    _check_period(period)
    if direction not in (1, -1):
        raise ValueError(f"direction must be 1 or -1, got {direction!r}")
    dd = as_date(d)

    if period == "day":
        return dd + dt.timedelta(days=direction)
    if period == "week":
        return week_start(dd) + dt.timedelta(days=7 * direction)

    month_index = dd.year * 12 + (dd.month - 1) + direction
    year, month0 = divmod(month_index, 12)
    max_day = calendar.monthrange(year, month0 + 1)[1]
    return dt.date(year, month0 + 1, min(dd.day, max_day))


def date_range(d: DateLike, period: str) -> Tuple[dt.date, dt.date]:
    """(start inclusive, end exclusive) for the period containing `d`."""
    _check_period(period)
    dd = as_date(d)
    if period == "day":
        return dd, dd + dt.timedelta(days=1)
    if period == "week":
        start = week_start(dd)
        return start, start + dt.timedelta(days=7)
    first = dd.replace(day=1)
    return first, navigate_date(first, "month", 1)


def dates_in_period(d: DateLike, period: str) -> List[dt.date]:
    start, end = date_range(d, period)
    out: List[dt.date] = []
    cur = start
    while cur < end:
        out.append(cur)
        cur += dt.timedelta(days=1)
    return out
