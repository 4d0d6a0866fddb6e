"""slotgrid.api

Stable *library* entrypoint for slotgrid.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from slotgrid.classify import BUCKET_NAMES, bucket_counts, classify, select_next
from slotgrid.compositor import composite_segments, segment_rects
from slotgrid.countdown import format_countdown, format_short_date
from slotgrid.geometry import (
    TimeSlot,
    build_time_slots,
    density_from_cfg,
    density_profile,
    project_to_grid,
    slot_span,
    slot_to_time,
    to_slot_index,
    window_from_cfg,
)
from slotgrid.layout import DayLayout, ResourceDay, build_day_layout, layout_to_dict
from slotgrid.live import REFRESH_INTERVAL_S, Clock, FixedClock, LiveSnapshot, SystemClock, live_indicator, now_line
from slotgrid.load import RecordError, Schedule, load_schedule, load_schedule_json
from slotgrid.model import (
    DENSITY_PRESETS,
    Appointment,
    ConflictSegment,
    DensityProfile,
    GridWindow,
    Instant,
    InvalidGridWindow,
    InvalidInterval,
    PlacedBooking,
    PlacedRect,
    PlacedSegment,
    ScheduleSegment,
    TimeInterval,
)
from slotgrid.placer import assign_lanes, detect_overlaps, place_bookings, stack_groups, stack_rects
from slotgrid.util.dates import date_range, navigate_date, week_start
from slotgrid.util.tz import (
    TimezoneFallback,
    ZoneResolution,
    local_date_key,
    local_hour,
    local_minute,
    resolve_timezone,
)
from slotgrid.week import DaySummary, week_summary


def agenda(
    appointments: Iterable[Appointment],
    now: Instant,
    timezone: Any = None,
    *,
    locale: str = "en",
) -> Dict[str, Any]:
    """Buckets plus the next appointment and its countdown, as one read of `now`.

    `timezone` defaults to now.tz.
    """
    items = list(appointments)
    zone = resolve_timezone(now.tz if timezone is None else timezone)
    buckets = classify(items, now, zone)
    nxt: Optional[Appointment] = select_next(items, now)
    return {
        "buckets": buckets,
        "counts": bucket_counts(buckets),
        "next": nxt,
        "countdown": format_countdown(now, nxt.start, zone, locale) if nxt is not None else None,
        "warnings": [zone.fallback] if zone.fallback is not None else [],
    }


# --- Public API exports (keep sorted) -----------------------------------------
_PUBLIC_EXPORTS = (
    "Appointment",
    "BUCKET_NAMES",
    "Clock",
    "ConflictSegment",
    "DENSITY_PRESETS",
    "DayLayout",
    "DaySummary",
    "DensityProfile",
    "FixedClock",
    "GridWindow",
    "Instant",
    "InvalidGridWindow",
    "InvalidInterval",
    "LiveSnapshot",
    "PlacedBooking",
    "PlacedRect",
    "PlacedSegment",
    "REFRESH_INTERVAL_S",
    "RecordError",
    "ResourceDay",
    "Schedule",
    "ScheduleSegment",
    "SystemClock",
    "TimeInterval",
    "TimeSlot",
    "TimezoneFallback",
    "ZoneResolution",
    "agenda",
    "assign_lanes",
    "bucket_counts",
    "build_day_layout",
    "build_time_slots",
    "classify",
    "composite_segments",
    "date_range",
    "density_from_cfg",
    "density_profile",
    "detect_overlaps",
    "format_countdown",
    "format_short_date",
    "layout_to_dict",
    "live_indicator",
    "load_schedule",
    "load_schedule_json",
    "local_date_key",
    "local_hour",
    "local_minute",
    "navigate_date",
    "now_line",
    "place_bookings",
    "project_to_grid",
    "resolve_timezone",
    "segment_rects",
    "select_next",
    "slot_span",
    "slot_to_time",
    "stack_groups",
    "stack_rects",
    "to_slot_index",
    "week_start",
    "week_summary",
    "window_from_cfg",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
