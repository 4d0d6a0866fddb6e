# slotgrid/geometry.py
"""Grid geometry: instants and intervals projected onto a bounded day grid.

All local-time arithmetic goes through the render timezone. A grid window is
anchored to one local calendar day; `end_hour == 24` means the following
midnight.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .model import DENSITY_PRESETS, DensityProfile, GridWindow, Instant, PlacedRect, TimeInterval
from .util.tz import MIN_MS, TimezoneLike, local_date, local_datetime, local_time_epoch_ms, resolve_timezone


def density_profile(name: str) -> DensityProfile:
    key = str(name or "").strip().lower()
    if key not in DENSITY_PRESETS:
        raise ValueError(f"Unknown density: {name!r} (expected one of {', '.join(sorted(DENSITY_PRESETS))})")
    return DENSITY_PRESETS[key]


def window_from_cfg(cfg: Mapping[str, Any]) -> GridWindow:
    return GridWindow(
        start_hour=int(cfg.get("start_hour", 8)),
        end_hour=int(cfg.get("end_hour", 20)),
        slot_minutes=int(cfg.get("slot_minutes", 30) or 30),
    )


def density_from_cfg(cfg: Mapping[str, Any]) -> DensityProfile:
    """Preset by name (cfg["density"]) unless explicit heights are given."""
    if cfg.get("slot_height") is not None:
        return DensityProfile(
            slot_height=float(cfg["slot_height"]),
            min_card_height=float(cfg.get("min_card_height") or 0),
        )
    return density_profile(str(cfg.get("density") or "comfortable"))


def window_bounds_ms(window: GridWindow, day: dt.date, timezone: TimezoneLike) -> Tuple[int, int]:
    """Epoch ms of start_hour:00 and end_hour:00 on local date `day`."""
    zone = resolve_timezone(timezone)
    return (
        local_time_epoch_ms(day, window.start_hour, 0, zone),
        local_time_epoch_ms(day, window.end_hour, 0, zone),
    )


def wall_minutes(ms: int, timezone: TimezoneLike, day: Optional[dt.date] = None, *, exact: bool = False) -> float:
    """Local wall-clock minutes since midnight of `day` (default: the instant's own day).

    Later local days count 1440 minutes each, so the following midnight is 1440.
    With exact=True seconds are kept as a fraction.
    """
    d = local_datetime(ms, timezone)
    mins: float = d.hour * 60 + d.minute
    if exact:
        mins += (d.second + d.microsecond / 1e6) / 60.0
    if day is not None:
        mins += (d.date() - day).days * 1440
    return mins


def to_slot_index(
    instant: Instant,
    window: GridWindow,
    timezone: TimezoneLike,
    day: Optional[dt.date] = None,
) -> int:
    """Slot the instant falls into; may be negative or >= total_slots (callers clip)."""
    mins = int(wall_minutes(instant.ms, timezone, day))
    return (mins - window.start_hour * 60) // window.slot_minutes


def clamp_to_window(
    interval: TimeInterval,
    window: GridWindow,
    timezone: TimezoneLike,
    day: Optional[dt.date] = None,
) -> Optional[Tuple[int, int, dt.date]]:
    """(start_ms, end_ms, day) of the visible part, or None if nothing is visible."""
    zone = resolve_timezone(timezone)
    d = day if day is not None else local_date(interval.start.ms, zone)
    ws, we = window_bounds_ms(window, d, zone)
    s = max(interval.start.ms, ws)
    e = min(interval.end.ms, we)
    if e <= s:
        return None
    return s, e, d


def project_to_grid(
    interval: TimeInterval,
    window: GridWindow,
    timezone: TimezoneLike,
    density: DensityProfile,
    *,
    day: Optional[dt.date] = None,
    min_height: bool = True,
) -> Optional[PlacedRect]:
    """Project an interval onto the grid.

    Returns None when the interval lies entirely outside the window. With
    min_height (bookings) the height is raised to density.min_card_height;
    segments pass min_height=False and keep their true duration.
    """
    zone = resolve_timezone(timezone)
    clamped = clamp_to_window(interval, window, zone, day)
    if clamped is None:
        return None
    s, e, d = clamped

    mins = int(wall_minutes(s, zone, d))
    slot = (mins - window.start_hour * 60) // window.slot_minutes
    within = (mins - window.start_hour * 60) % window.slot_minutes

    sh = float(density.slot_height)
    top = slot * sh + (within / window.slot_minutes) * sh
    raw_height = ((e - s) / MIN_MS / window.slot_minutes) * sh
    height = max(raw_height, float(density.min_card_height)) if min_height else raw_height
    return PlacedRect(top=top, height=height)


def _clock_change_ms(s: int, e: int, timezone: TimezoneLike) -> int:
    """First ms in (s, e] whose UTC offset differs from the offset at s."""
    off_s = local_datetime(s, timezone).utcoffset()
    lo, hi = s, e
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if local_datetime(mid, timezone).utcoffset() == off_s:
            lo = mid
        else:
            hi = mid
    return hi


def slot_span(
    interval: TimeInterval,
    window: GridWindow,
    timezone: TimezoneLike,
    day: Optional[dt.date] = None,
) -> Optional[Tuple[int, int]]:
    """(first_slot, last_slot) touched by the right-open interval, clipped to the grid.

    When the wall clock goes back inside the interval (DST fall-back), both
    passes through the repeated hour count as touched.
    """
    zone = resolve_timezone(timezone)
    clamped = clamp_to_window(interval, window, zone, day)
    if clamped is None:
        return None
    s, e, d = clamped
    base = window.start_hour * 60
    lo = wall_minutes(s, zone, d, exact=True)
    hi = wall_minutes(e, zone, d, exact=True)
    shift = local_datetime(s, zone).utcoffset() - local_datetime(e - 1, zone).utcoffset()
    if shift > dt.timedelta(0):
        t = _clock_change_ms(s, e - 1, zone)
        repeat_start = wall_minutes(t, zone, d, exact=True)
        repeat_end = repeat_start + shift.total_seconds() / 60.0
        lo, hi = min(lo, repeat_start), max(hi, repeat_end)
    elif hi <= lo:
        # Clock went back exactly at the exclusive end.
        hi = lo + (e - s) / MIN_MS
    first = int(math.floor((lo - base) / window.slot_minutes))
    last = int(math.ceil((hi - base) / window.slot_minutes)) - 1
    first = max(0, first)
    last = min(window.total_slots - 1, last)
    if last < first:
        return None
    return first, last


@dataclass(frozen=True)
class TimeSlot:
    index: int
    hour: int
    minute: int
    label: str


def slot_to_time(index: int, window: GridWindow) -> str:
    """HH:MM label of a slot's start (e.g. a clicked empty slot)."""
    if not (0 <= index < window.total_slots):
        raise IndexError(f"slot index {index} outside 0..{window.total_slots - 1}")
    hour = window.start_hour + index // window.slots_per_hour
    minute = (index % window.slots_per_hour) * window.slot_minutes
    return f"{hour:02d}:{minute:02d}"


def build_time_slots(window: GridWindow) -> List[TimeSlot]:
    out: List[TimeSlot] = []
    for i in range(window.total_slots):
        hour = window.start_hour + i // window.slots_per_hour
        minute = (i % window.slots_per_hour) * window.slot_minutes
        out.append(TimeSlot(index=i, hour=hour, minute=minute, label=f"{hour:02d}:{minute:02d}"))
    return out


def grid_height(window: GridWindow, density: DensityProfile) -> float:
    return window.total_slots * float(density.slot_height)


def rect_to_dict(rect: Optional[PlacedRect]) -> Optional[Dict[str, float]]:
    if rect is None:
        return None
    return {"top": round(rect.top, 3), "height": round(rect.height, 3)}


__all__ = [
    "TimeSlot",
    "build_time_slots",
    "clamp_to_window",
    "density_from_cfg",
    "density_profile",
    "grid_height",
    "project_to_grid",
    "rect_to_dict",
    "slot_span",
    "slot_to_time",
    "to_slot_index",
    "wall_minutes",
    "window_bounds_ms",
    "window_from_cfg",
]
