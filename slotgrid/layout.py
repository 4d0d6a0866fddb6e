# slotgrid/layout.py
"""One rendered day: per-resource background layer, booking cards, overlaps, now line."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .compositor import composite_segments, segment_rects
from .geometry import build_time_slots, grid_height, rect_to_dict
from .live import now_line
from .model import (
    Appointment,
    ConflictSegment,
    DensityProfile,
    GridWindow,
    Instant,
    PlacedBooking,
    PlacedRect,
    PlacedSegment,
    ScheduleSegment,
)
from .placer import assign_lanes, detect_overlaps, place_bookings, stack_groups, stack_rects
from .util.console import info
from .util.tz import TimezoneFallback, TimezoneLike, midnight_epoch_ms, resolve_timezone


@dataclass(frozen=True)
class ResourceDay:
    resource_id: str
    background: Dict[int, str]
    segments: Tuple[PlacedSegment, ...]
    bookings: Tuple[PlacedBooking, ...]
    stacks: Dict[int, Tuple[PlacedRect, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class DayLayout:
    date_key: str
    timezone: str
    window: GridWindow
    density: DensityProfile
    resources: Tuple[ResourceDay, ...]
    overlaps: Tuple[ConflictSegment, ...]
    now_line: Optional[PlacedRect]
    warnings: Tuple[TimezoneFallback, ...] = ()


def _resource_order(
    resources: Optional[Sequence[str]],
    appointments: Sequence[Appointment],
    segments: Sequence[ScheduleSegment],
) -> List[str]:
    if resources is not None:
        return [str(r) for r in resources]
    seen = {a.resource_id for a in appointments} | {s.resource_id for s in segments}
    return sorted(seen)


def build_day_layout(
    appointments: Iterable[Appointment],
    segments: Iterable[ScheduleSegment],
    day: dt.date,
    window: GridWindow,
    timezone: TimezoneLike,
    density: DensityProfile,
    *,
    now: Optional[Instant] = None,
    resources: Optional[Sequence[str]] = None,
) -> DayLayout:
    """Lay out one local day for every resource.

    `resources` fixes the column order (the external resource list); by
    default every resource seen in the input is shown, sorted by id.
    """
    zone = resolve_timezone(timezone)
    appts = list(appointments)
    segs = list(segments)

    day_lo = midnight_epoch_ms(day, zone)
    day_hi = midnight_epoch_ms(day + dt.timedelta(days=1), zone)
    day_appts = [a for a in appts if a.start.ms < day_hi and a.end.ms > day_lo]

    rids = _resource_order(resources, appts, segs)
    out: List[ResourceDay] = []
    for rid in rids:
        r_segs = [s for s in segs if s.resource_id == rid]
        r_appts = [a for a in day_appts if a.resource_id == rid]

        placed = assign_lanes(place_bookings(r_appts, window, zone, density, day))
        stacks = {
            group: tuple(stack_rects(members))
            for (_rid, group), members in stack_groups(placed).items()
        }
        out.append(
            ResourceDay(
                resource_id=rid,
                background=composite_segments(r_segs, window, zone, day),
                segments=tuple(segment_rects(r_segs, window, zone, density, day)),
                bookings=tuple(placed),
                stacks=stacks,
            )
        )

    shown = set(rids)
    overlaps = tuple(detect_overlaps([a for a in day_appts if a.resource_id in shown]))
    line = now_line(window, zone, density, now, day) if now is not None else None
    info(
        "layout",
        f"day.ok date={day.isoformat()} resources={len(out)} bookings={sum(len(r.bookings) for r in out)} "
        f"overlaps={len(overlaps)}",
    )
    return DayLayout(
        date_key=day.isoformat(),
        timezone=zone.name,
        window=window,
        density=density,
        resources=tuple(out),
        overlaps=overlaps,
        now_line=line,
        warnings=(zone.fallback,) if zone.fallback is not None else (),
    )


def layout_to_dict(layout: DayLayout) -> Dict[str, Any]:
    """JSON-ready view of a DayLayout (rects rounded to 3 decimals)."""
    resources: List[Dict[str, Any]] = []
    for r in layout.resources:
        resources.append(
            {
                "resource_id": r.resource_id,
                "background": {str(k): v for k, v in r.background.items()},
                "segments": [
                    {
                        "kind": ps.segment.kind,
                        "start_ms": ps.segment.interval.start.ms,
                        "end_ms": ps.segment.interval.end.ms,
                        "rect": rect_to_dict(ps.rect),
                        "metadata": ps.segment.metadata,
                    }
                    for ps in r.segments
                ],
                "bookings": [
                    {
                        "id": pb.appointment.id,
                        "status": pb.appointment.status,
                        "is_walk_in": pb.appointment.is_walk_in,
                        "problems": sorted(pb.appointment.problems),
                        "start_ms": pb.appointment.start.ms,
                        "end_ms": pb.appointment.end.ms,
                        "rect": rect_to_dict(pb.rect),
                        "stack_group": pb.stack_group,
                        "lane": pb.lane,
                        "lanes": pb.lanes,
                    }
                    for pb in r.bookings
                ],
            }
        )

    return {
        "date": layout.date_key,
        "tz": layout.timezone,
        "window": {
            "start_hour": layout.window.start_hour,
            "end_hour": layout.window.end_hour,
            "slot_minutes": layout.window.slot_minutes,
            "total_slots": layout.window.total_slots,
        },
        "grid_height": grid_height(layout.window, layout.density),
        "time_slots": [s.label for s in build_time_slots(layout.window)],
        "resources": resources,
        "overlaps": [
            {"resource_id": c.resource_id, "start_ms": c.start_ms, "end_ms": c.end_ms, "ids": list(c.ids)}
            for c in layout.overlaps
        ],
        "now_line": rect_to_dict(layout.now_line),
        "warnings": [str(w) for w in layout.warnings],
    }
