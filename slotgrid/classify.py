# slotgrid/classify.py
"""Operational buckets over an appointment collection.

Buckets may overlap. `history` is the only bucket sorted most-recent-first;
every other bucket reads soonest-first. Sorting is stable, so equal start
times keep input order.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .model import Appointment, Instant
from .util.dates import week_start
from .util.tz import HOUR_MS, TimezoneLike, local_date, midnight_epoch_ms, resolve_timezone

BUCKET_NAMES = (
    "today",
    "tomorrow",
    "this_week",
    "next_2h",
    "upcoming",
    "needs_action",
    "cancelled",
    "history",
)

# Every appointment is in history XOR at least one of these.
FORWARD_BUCKETS = ("upcoming", "next_2h", "needs_action")

DESCENDING_BUCKETS = frozenset({"history"})

NEXT_ELIGIBLE_STATUSES = frozenset({"confirmed", "scheduled", "pending"})
CLOSED_STATUSES = frozenset({"completed", "cancelled"})
ACTION_STATUSES = frozenset({"pending", "no-show"})

NEXT_WINDOW_MS = 2 * HOUR_MS

Predicate = Callable[[Appointment], bool]


def _predicates(now: Instant, timezone: TimezoneLike) -> Dict[str, Predicate]:
    zone = resolve_timezone(timezone)
    today = local_date(now.ms, zone)
    tomorrow = today + dt.timedelta(days=1)
    monday = week_start(today)
    week_lo = midnight_epoch_ms(monday, zone)
    week_hi = midnight_epoch_ms(monday + dt.timedelta(days=7), zone)
    now_ms = now.ms

    return {
        "today": lambda a: local_date(a.start.ms, zone) == today,
        "tomorrow": lambda a: local_date(a.start.ms, zone) == tomorrow,
        "this_week": lambda a: week_lo <= a.start.ms < week_hi,
        "next_2h": lambda a: now_ms < a.start.ms <= now_ms + NEXT_WINDOW_MS and a.status not in CLOSED_STATUSES,
        "upcoming": lambda a: a.end.ms >= now_ms and a.status not in CLOSED_STATUSES,
        "needs_action": lambda a: a.status in ACTION_STATUSES and a.end.ms >= now_ms,
        "cancelled": lambda a: a.status == "cancelled",
        "history": lambda a: a.end.ms < now_ms or a.status in CLOSED_STATUSES,
    }


def classify(
    appointments: Iterable[Appointment],
    now: Instant,
    timezone: TimezoneLike = None,
) -> Dict[str, List[Appointment]]:
    """Bucket appointments relative to `now`; every bucket key is always present.

    Calendar buckets (today, tomorrow, this_week) use local dates in
    `timezone` (default: now.tz); weeks start Monday 00:00.
    """
    items = list(appointments)
    preds = _predicates(now, now.tz if timezone is None else timezone)

    out: Dict[str, List[Appointment]] = {}
    for name in BUCKET_NAMES:
        pred = preds[name]
        members = [a for a in items if pred(a)]
        members.sort(key=lambda a: a.start.ms, reverse=name in DESCENDING_BUCKETS)
        out[name] = members
    return out


def bucket_counts(buckets: Dict[str, Sequence[Appointment]]) -> Dict[str, int]:
    return {name: len(buckets.get(name) or ()) for name in BUCKET_NAMES}


def select_next(appointments: Iterable[Appointment], now: Instant) -> Optional[Appointment]:
    """Earliest appointment starting after `now` that is still expected to happen.

    Ties keep input order. None means "no upcoming appointment", not an error.
    """
    best: Optional[Appointment] = None
    for a in appointments:
        if a.start.ms <= now.ms or a.status not in NEXT_ELIGIBLE_STATUSES:
            continue
        if best is None or a.start.ms < best.start.ms:
            best = a
    return best
