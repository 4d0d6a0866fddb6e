# slotgrid/live.py
"""Live "now" marker and countdown.

The engine never schedules itself: callers poll live_indicator() on their own
timer (REFRESH_INTERVAL_S is enough, the smallest displayed unit is a minute)
and pass the Clock they want to be read.
"""

from __future__ import annotations

import datetime as dt
import time
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Tuple

from .classify import select_next
from .countdown import format_countdown
from .geometry import wall_minutes, window_bounds_ms
from .model import Appointment, DensityProfile, GridWindow, Instant, PlacedRect
from .util.tz import TimezoneFallback, TimezoneLike, local_date, resolve_timezone

REFRESH_INTERVAL_S = 60


class Clock(Protocol):
    def now(self) -> Instant:
        """Return the current instant."""


@dataclass(frozen=True)
class SystemClock:
    tz: str = "UTC"

    def now(self) -> Instant:
        return Instant(ms=int(time.time() * 1000), tz=self.tz)


@dataclass(frozen=True)
class FixedClock:
    """Clock pinned to one instant (tests, replays)."""

    instant: Instant

    def now(self) -> Instant:
        return self.instant


@dataclass(frozen=True)
class LiveSnapshot:
    now: Instant
    now_line: Optional[PlacedRect]
    next_appointment: Optional[Appointment]
    countdown: Optional[str]
    warnings: Tuple[TimezoneFallback, ...] = ()


def now_line(
    window: GridWindow,
    timezone: TimezoneLike,
    density: DensityProfile,
    now: Instant,
    day: Optional[dt.date] = None,
) -> Optional[PlacedRect]:
    """Vertical offset of the now marker (height 0), or None when no line is drawn.

    With `day` set, the line is only drawn when `now` falls on that local date.
    """
    zone = resolve_timezone(timezone)
    d = local_date(now.ms, zone)
    if day is not None and d != day:
        return None
    ws, we = window_bounds_ms(window, d, zone)
    if not (ws <= now.ms < we):
        return None

    mins = int(wall_minutes(now.ms, zone, d)) - window.start_hour * 60
    slot = mins // window.slot_minutes
    within = mins % window.slot_minutes
    sh = float(density.slot_height)
    return PlacedRect(top=slot * sh + (within / window.slot_minutes) * sh, height=0.0)


def live_indicator(
    clock: Clock,
    appointments: Iterable[Appointment],
    window: GridWindow,
    timezone: TimezoneLike,
    density: DensityProfile,
    *,
    day: Optional[dt.date] = None,
    locale: str = "en",
) -> LiveSnapshot:
    """Read the clock once and derive the now line plus the countdown to the next appointment.

    Owns no appointment data; the collection is only read.
    """
    zone = resolve_timezone(timezone)
    now = clock.now()
    nxt = select_next(appointments, now)
    countdown = format_countdown(now, nxt.start, zone, locale) if nxt is not None else None
    warnings = (zone.fallback,) if zone.fallback is not None else ()
    return LiveSnapshot(
        now=now,
        now_line=now_line(window, zone, density, now, day),
        next_appointment=nxt,
        countdown=countdown,
        warnings=warnings,
    )
