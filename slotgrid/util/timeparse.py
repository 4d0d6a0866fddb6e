# slotgrid/util/timeparse.py
from __future__ import annotations

import datetime as dt
import re
from typing import Tuple

from .tz import TimezoneLike, tzinfo_of

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_HOUR_RE = re.compile(r"^(\d{1,2})(?::00)?$")


def parse_hhmm(s: str) -> Tuple[int, int]:
    m = _HHMM_RE.match(s.strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    if not (0 <= hh <= 23 and 0 <= mm <= 59):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm


def _parse_whole_hour(s: str) -> int:
    m = _HOUR_RE.match(s.strip())
    if not m:
        raise ValueError(f"Grid hours must be whole hours (HH or HH:00): {s!r}")
    return int(m.group(1))


def parse_grid_hours(s: str) -> Tuple[int, int]:
    """Parse "08-20" or "08:00-20:00" into (start_hour, end_hour).

    "24" / "24:00" is accepted as the end of the day.
    """
    parts = s.split("-")
    if len(parts) != 2:
        raise ValueError("grid hours must be like 08-20 or 08:00-20:00")
    start = _parse_whole_hour(parts[0])
    end = _parse_whole_hour(parts[1])
    if not (0 <= start < end <= 24):
        raise ValueError(f"grid hours must satisfy 0 <= start < end <= 24: {s!r}")
    return start, end


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    return dt.datetime.strptime(s, "%Y-%m-%d").date()


def parse_iso_to_epoch_ms(s: str, tz: TimezoneLike = "UTC") -> int:
    """Parse an ISO-8601 timestamp into epoch ms.

    "Z" and explicit offsets are honoured. Naive strings are read as wall-clock
    time in `tz`; an ambiguous wall time (DST fall-back) resolves to the first
    occurrence.
    """
    raw = str(s or "").strip()
    if not raw:
        raise ValueError("Empty timestamp")
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(raw)
    except ValueError as ex:
        raise ValueError(f"Invalid ISO timestamp: {s!r}") from ex
    if d.tzinfo is None:
        d = d.replace(tzinfo=tzinfo_of(tz))
    return int(round(d.timestamp() * 1000))
