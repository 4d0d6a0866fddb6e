# slotgrid/placer.py
from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .geometry import clamp_to_window, project_to_grid, to_slot_index
from .model import Appointment, ConflictSegment, DensityProfile, GridWindow, PlacedBooking, PlacedRect
from .util.tz import TimezoneLike, resolve_timezone


def place_bookings(
    appointments: Iterable[Appointment],
    window: GridWindow,
    timezone: TimezoneLike,
    density: DensityProfile,
    day: Optional[dt.date] = None,
) -> List[PlacedBooking]:
    """Place appointments on the grid; ones entirely outside the window are dropped.

    Heights are raised to density.min_card_height so very short services stay
    clickable. That is a readability override of the true geometry: a UI that
    also prints exact times must not derive them from the rect.

    stack_group is to_slot_index(start) of the raw start, so a booking clipped at
    the window top keeps its own (negative) group. Output keeps input order.
    """
    zone = resolve_timezone(timezone)
    out: List[PlacedBooking] = []
    for appt in appointments:
        clamped = clamp_to_window(appt.interval, window, zone, day)
        if clamped is None:
            continue
        _s, _e, d = clamped
        rect = project_to_grid(appt.interval, window, zone, density, day=d, min_height=True)
        if rect is None:
            continue
        group = to_slot_index(appt.start, window, zone, d)
        out.append(PlacedBooking(appointment=appt, rect=rect, stack_group=group))
    return out


def stack_groups(placed: Iterable[PlacedBooking]) -> Dict[Tuple[str, int], List[PlacedBooking]]:
    """Group placed bookings by (resource_id, stack_group).

    Members are ordered by start, ties by input order. Keys are sorted.
    """
    groups: Dict[Tuple[str, int], List[PlacedBooking]] = {}
    for pb in placed:
        groups.setdefault((pb.appointment.resource_id, pb.stack_group), []).append(pb)
    for members in groups.values():
        members.sort(key=lambda pb: pb.appointment.start.ms)
    return {k: groups[k] for k in sorted(groups)}


def stack_rects(group: Sequence[PlacedBooking]) -> List[PlacedRect]:
    """Stack one group vertically from its first member's top; rects never overlap."""
    out: List[PlacedRect] = []
    if not group:
        return out
    cursor = group[0].rect.top
    for pb in group:
        out.append(PlacedRect(top=cursor, height=pb.rect.height))
        cursor += pb.rect.height
    return out


def assign_lanes(placed: Sequence[PlacedBooking]) -> List[PlacedBooking]:
    """Side-by-side lanes for visually overlapping bookings of one resource (desktop).

    Overlap is judged on the rendered rect, so a minimum-height card that spills
    into the next booking gets its own lane. Output keeps input order.
    """
    lane_of: Dict[int, Tuple[int, int]] = {}

    by_resource: Dict[str, List[int]] = {}
    for i, pb in enumerate(placed):
        by_resource.setdefault(pb.appointment.resource_id, []).append(i)

    for idxs in by_resource.values():
        idxs = sorted(idxs, key=lambda i: (placed[i].rect.top, placed[i].rect.top + placed[i].rect.height))

        clusters: List[List[int]] = []
        cur: List[int] = []
        max_end = float("-inf")
        for i in idxs:
            top = placed[i].rect.top
            bottom = top + placed[i].rect.height
            if cur and top < max_end:
                cur.append(i)
                max_end = max(max_end, bottom)
            else:
                if cur:
                    clusters.append(cur)
                cur = [i]
                max_end = bottom
        if cur:
            clusters.append(cur)

        for cluster in clusters:
            lanes: List[float] = []
            assigned: List[Tuple[int, int]] = []
            for i in cluster:
                top = placed[i].rect.top
                bottom = top + placed[i].rect.height
                lane_index = -1
                for li, lane_end in enumerate(lanes):
                    if lane_end <= top:
                        lane_index = li
                        break
                if lane_index < 0:
                    lane_index = len(lanes)
                    lanes.append(bottom)
                else:
                    lanes[lane_index] = bottom
                assigned.append((i, lane_index))
            total = max(1, len(lanes))
            for i, lane_index in assigned:
                lane_of[i] = (lane_index, total)

    return [
        dataclasses.replace(pb, lane=lane_of[i][0], lanes=lane_of[i][1])
        for i, pb in enumerate(placed)
    ]


def detect_overlaps(appointments: Iterable[Appointment]) -> List[ConflictSegment]:
    """Spans where two or more non-cancelled appointments of a resource overlap.

    Flags only; nothing is moved. Adjacent spans with the same members are merged.
    """
    by_resource: Dict[str, List[Appointment]] = {}
    for appt in appointments:
        if appt.status == "cancelled":
            continue
        by_resource.setdefault(appt.resource_id, []).append(appt)

    segments: List[ConflictSegment] = []
    for resource_id in sorted(by_resource):
        pts: List[Tuple[int, int, str]] = []
        for appt in by_resource[resource_id]:
            pts.append((appt.start.ms, +1, appt.id))
            pts.append((appt.end.ms, -1, appt.id))
        # Ends sort before starts at the same instant: back-to-back is not an overlap.
        pts.sort(key=lambda x: (x[0], x[1]))

        active: Dict[str, int] = {}
        prev_t: Optional[int] = None
        for t_ms, kind, appt_id in pts:
            if prev_t is not None and t_ms > prev_t and len(active) >= 2:
                ids = tuple(sorted(active))
                key = ",".join(ids)
                last = segments[-1] if segments else None
                if last and last.resource_id == resource_id and last.key == key and last.end_ms == prev_t:
                    segments[-1] = dataclasses.replace(last, end_ms=t_ms)
                else:
                    segments.append(
                        ConflictSegment(resource_id=resource_id, start_ms=prev_t, end_ms=t_ms, ids=ids, key=key)
                    )
            if kind == +1:
                active[appt_id] = active.get(appt_id, 0) + 1
            else:
                n = active.get(appt_id, 0) - 1
                if n > 0:
                    active[appt_id] = n
                else:
                    active.pop(appt_id, None)
            prev_t = t_ms

    return segments
