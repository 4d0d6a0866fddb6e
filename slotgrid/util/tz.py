# slotgrid/util/tz.py
from __future__ import annotations

import datetime as dt
import functools
import re
from dataclasses import dataclass
from typing import Optional, Union

from zoneinfo import ZoneInfo

from .console import warn

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

MIN_MS = 60_000
HOUR_MS = 60 * MIN_MS
DAY_MS = 24 * HOUR_MS


def normalize_tz_name(name: Optional[str]) -> str:
    """Normalize a timezone identifier.

    Supported forms:
      - None/"" -> "" (unresolved; soft resolution falls back to UTC)
      - "local" / "system" -> "local" (explicit request for the machine timezone)
      - "UTC" / "Z" / "GMT" -> "UTC"
      - IANA names, e.g. "Europe/Oslo"
      - Fixed offsets: "+02:00", "+0200", "-05:00"
    """
    if name is None:
        return ""
    s = str(name).strip()
    if not s:
        return ""

    low = s.lower()
    if low in {"local", "system", "native"}:
        return "local"
    if low in {"utc", "z", "gmt", "utc0", "utc+0", "etc/utc"}:
        return "UTC"

    return s


def resolve_tz(name: Optional[str]) -> dt.tzinfo:
    """Resolve a timezone name into a tzinfo.

    Strict variant: raises ValueError for empty or invalid identifiers.
    Configuration and command-line validation use this; rendering code goes
    through resolve_timezone() instead.
    """
    tz_name = normalize_tz_name(name)

    if not tz_name:
        raise ValueError("Empty timezone identifier")

    if tz_name == "UTC":
        return dt.timezone.utc

    if tz_name == "local":
        tz = dt.datetime.now().astimezone().tzinfo
        return tz or dt.timezone.utc

    # Fixed offsets: +HH:MM, +HHMM, -HH:MM, -HHMM
    m = _OFFSET_RE.match(tz_name)
    if m:
        sign_s, hh_s, mm_s = m.groups()
        hh = int(hh_s)
        mm = int(mm_s)
        if hh > 23 or mm > 59:
            raise ValueError(f"Invalid timezone offset: {tz_name!r}")
        sign = 1 if sign_s == "+" else -1
        return dt.timezone(dt.timedelta(minutes=sign * (hh * 60 + mm)))

    try:
        return ZoneInfo(tz_name)
    except (ValueError, KeyError, OSError) as ex:
        raise ValueError(f"Invalid timezone identifier: {tz_name!r}") from ex


@dataclass(frozen=True)
class TimezoneFallback:
    """Soft signal: `requested` could not be resolved, UTC was used instead."""

    requested: str
    reason: str

    def __str__(self) -> str:
        return f"timezone {self.requested!r} unresolved ({self.reason}); using UTC"


@dataclass(frozen=True)
class ZoneResolution:
    name: str
    tzinfo: dt.tzinfo
    fallback: Optional[TimezoneFallback] = None

    @property
    def ok(self) -> bool:
        return self.fallback is None


@functools.lru_cache(maxsize=256)
def _resolve_cached(name: str) -> ZoneResolution:
    try:
        tzinfo = resolve_tz(name)
    except ValueError as ex:
        fb = TimezoneFallback(requested=name, reason=str(ex))
        warn("tz", str(fb))
        return ZoneResolution(name="UTC", tzinfo=dt.timezone.utc, fallback=fb)
    return ZoneResolution(name=normalize_tz_name(name), tzinfo=tzinfo)


TimezoneLike = Union[str, dt.tzinfo, ZoneResolution, None]


def resolve_timezone(tz: TimezoneLike) -> ZoneResolution:
    """Resolve without ever raising; failures degrade to UTC plus a TimezoneFallback.

    The WARN line is printed once per distinct name.
    """
    if isinstance(tz, ZoneResolution):
        return tz
    if isinstance(tz, dt.tzinfo):
        return ZoneResolution(name=str(tz), tzinfo=tz)
    return _resolve_cached("" if tz is None else str(tz))


def tzinfo_of(tz: TimezoneLike) -> dt.tzinfo:
    return resolve_timezone(tz).tzinfo


def tz_name_of(d: dt.datetime) -> str:
    """Name for an aware datetime's zone that resolve_tz accepts back.

    ZoneInfo keeps its IANA key; anything else becomes its fixed offset ("+02:00").
    """
    key = getattr(d.tzinfo, "key", None)
    if key:
        return key
    off = d.utcoffset()
    if off is None:
        raise ValueError("tz_name_of requires an aware datetime")
    if not off:
        return "UTC"
    sign = "-" if off < dt.timedelta(0) else "+"
    mins = abs(int(off.total_seconds())) // 60
    return f"{sign}{mins // 60:02d}:{mins % 60:02d}"


@dataclass(frozen=True)
class LocalParts:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    weekday: int  # Monday == 0

    @property
    def date(self) -> dt.date:
        return dt.date(self.year, self.month, self.day)


def local_datetime(ms: int, tz: TimezoneLike) -> dt.datetime:
    return dt.datetime.fromtimestamp(int(ms) / 1000.0, tz=tzinfo_of(tz))


def local_parts(ms: int, tz: TimezoneLike) -> LocalParts:
    d = local_datetime(ms, tz)
    return LocalParts(
        year=d.year,
        month=d.month,
        day=d.day,
        hour=d.hour,
        minute=d.minute,
        second=d.second,
        weekday=d.weekday(),
    )


def local_hour(ms: int, tz: TimezoneLike) -> int:
    return local_datetime(ms, tz).hour


def local_minute(ms: int, tz: TimezoneLike) -> int:
    return local_datetime(ms, tz).minute


def local_date(ms: int, tz: TimezoneLike) -> dt.date:
    return local_datetime(ms, tz).date()


def local_date_key(ms: int, tz: TimezoneLike) -> str:
    return local_date(ms, tz).isoformat()


def today_date(tz: TimezoneLike) -> dt.date:
    return dt.datetime.now(tz=tzinfo_of(tz)).date()


def local_time_epoch_ms(d: dt.date, hour: int, minute: int, tz: TimezoneLike) -> int:
    """Epoch ms of wall-clock `hour:minute` on date `d`.

    hour == 24 means midnight of the following day. Ambiguous wall times
    (DST fall-back) resolve to the first occurrence.
    """
    if hour == 24 and minute == 0:
        d = d + dt.timedelta(days=1)
        hour = 0
    aware = dt.datetime(d.year, d.month, d.day, hour, minute, 0, tzinfo=tzinfo_of(tz))
    return int(aware.timestamp() * 1000)


def midnight_epoch_ms(d: dt.date, tz: TimezoneLike) -> int:
    return local_time_epoch_ms(d, 0, 0, tz)
