# slotgrid/week.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .model import Appointment
from .util.dates import DateLike, dates_in_period
from .util.tz import TimezoneLike, local_date_key, resolve_timezone


@dataclass(frozen=True)
class DaySummary:
    date_key: str
    count: int  # excludes cancelled
    cancelled: int
    appointments: Tuple[Appointment, ...]


def week_summary(appointments: Iterable[Appointment], day: DateLike, timezone: TimezoneLike) -> List[DaySummary]:
    """Monday..Sunday of the week containing `day`, bucketed by local start date.

    Appointments of each day are ordered by start time.
    """
    zone = resolve_timezone(timezone)
    dates: List[dt.date] = dates_in_period(day, "week")
    by_day: Dict[str, List[Appointment]] = {d.isoformat(): [] for d in dates}

    for a in appointments:
        key = local_date_key(a.start.ms, zone)
        if key in by_day:
            by_day[key].append(a)

    out: List[DaySummary] = []
    for d in dates:
        items = sorted(by_day[d.isoformat()], key=lambda a: a.start.ms)
        cancelled = sum(1 for a in items if a.status == "cancelled")
        out.append(
            DaySummary(
                date_key=d.isoformat(),
                count=len(items) - cancelled,
                cancelled=cancelled,
                appointments=tuple(items),
            )
        )
    return out
