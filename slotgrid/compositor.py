# slotgrid/compositor.py
"""Background layer of a resource day: one winning segment kind per slot.

Precedence is applied in two explicit passes:
  1) soft kinds (working, buffer, time_block): first segment in input order claims the slot
  2) dominant kinds (closed, break): overwrite any slot they touch; closed outranks break

Slots are right-open: a segment ending exactly on a slot boundary does not
touch the next slot.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, Iterable, List, Optional, Tuple

from .geometry import project_to_grid, slot_span
from .model import DOMINANT_KINDS, DensityProfile, GridWindow, PlacedSegment, ScheduleSegment
from .util.tz import TimezoneLike, resolve_timezone


def _background_segments(segments: Iterable[ScheduleSegment]) -> List[ScheduleSegment]:
    return [s for s in segments if s.kind != "booking"]


def _spans(
    segments: List[ScheduleSegment],
    window: GridWindow,
    timezone: TimezoneLike,
    day: Optional[dt.date],
) -> List[Tuple[ScheduleSegment, int, int]]:
    out: List[Tuple[ScheduleSegment, int, int]] = []
    for seg in segments:
        span = slot_span(seg.interval, window, timezone, day)
        if span is None:
            # Entirely outside the window (e.g. a break before opening): contributes nothing.
            continue
        out.append((seg, span[0], span[1]))
    return out


def composite_segments(
    segments: Iterable[ScheduleSegment],
    window: GridWindow,
    timezone: TimezoneLike,
    day: Optional[dt.date] = None,
) -> Dict[int, str]:
    """Map each touched slot index to the winning segment kind.

    `segments` are the non-booking segments of one resource and one day;
    booking segments are ignored. Slots no segment touches are absent.
    """
    zone = resolve_timezone(timezone)
    spans = _spans(_background_segments(segments), window, zone, day)

    out: Dict[int, str] = {}

    # Pass 1: soft kinds, first write wins.
    for seg, first, last in spans:
        if seg.kind in DOMINANT_KINDS:
            continue
        for i in range(first, last + 1):
            out.setdefault(i, seg.kind)

    # Pass 2: dominant kinds, lowest rank wins regardless of input order.
    rank: Dict[int, int] = {}
    for seg, first, last in spans:
        if seg.kind not in DOMINANT_KINDS:
            continue
        r = DOMINANT_KINDS.index(seg.kind)
        for i in range(first, last + 1):
            if i not in rank or r < rank[i]:
                rank[i] = r
                out[i] = seg.kind

    return dict(sorted(out.items()))


def segment_rects(
    segments: Iterable[ScheduleSegment],
    window: GridWindow,
    timezone: TimezoneLike,
    density: DensityProfile,
    day: Optional[dt.date] = None,
) -> List[PlacedSegment]:
    """Continuous background rectangles (desktop); never height-inflated.

    Segments with nothing visible are dropped. Input order is kept.
    """
    zone = resolve_timezone(timezone)
    out: List[PlacedSegment] = []
    for seg in _background_segments(segments):
        rect = project_to_grid(seg.interval, window, zone, density, day=day, min_height=False)
        if rect is None or rect.height <= 0:
            continue
        out.append(PlacedSegment(segment=seg, rect=rect))
    return out
