#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

from slotgrid.geometry import density_profile
from slotgrid.layout import build_day_layout, layout_to_dict
from slotgrid.load import load_schedule_json
from slotgrid.model import GridWindow, Instant
from slotgrid.util.timeparse import parse_date_yyyy_mm_dd, parse_grid_hours
from slotgrid.util.tz import normalize_tz_name, resolve_tz


def _die(msg: str, rc: int = 2) -> int:
    print(f"[slotgrid-day-layout] ERROR: {msg}", file=sys.stderr)
    return rc


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="slotgrid-day-layout",
        description="Lay out one day of a schedule JSON onto the slot grid and print the layout JSON.",
    )
    ap.add_argument("--in", dest="in_json", required=True, help="Input schedule JSON path")
    ap.add_argument("--date", required=True, help="Local day to lay out (YYYY-MM-DD)")
    ap.add_argument(
        "--tz",
        default=os.getenv("SLOTGRID_TZ", "UTC"),
        help="Render timezone (default: env SLOTGRID_TZ or 'UTC')",
    )
    ap.add_argument(
        "--hours",
        default=os.getenv("SLOTGRID_HOURS", "08-20"),
        help="Visible hours, e.g. 08-20 or 08:00-20:00 (default: env SLOTGRID_HOURS or 08-20)",
    )
    ap.add_argument(
        "--slot",
        type=int,
        default=int(os.getenv("SLOTGRID_SLOT_MIN", "30")),
        help="Slot size in minutes (default: env SLOTGRID_SLOT_MIN or 30)",
    )
    ap.add_argument(
        "--density",
        default=os.getenv("SLOTGRID_DENSITY", "comfortable"),
        help="Density preset: compact, comfortable, mobile (default: env SLOTGRID_DENSITY or comfortable)",
    )
    ap.add_argument("--resource", action="append", default=None, help="Resource column to show (repeatable; default: all)")
    ap.add_argument("--now", default=None, help="Current time (ISO-8601) for the now line")
    ap.add_argument("--out", default=None, help="Write JSON here instead of stdout")
    ns = ap.parse_args(argv)

    # Strict here: a typo on the command line is an error, not a UTC fallback.
    tz_name = normalize_tz_name(ns.tz)
    try:
        resolve_tz(tz_name)
    except ValueError as e:
        return _die(f"Invalid --tz value: {e}")

    try:
        day = parse_date_yyyy_mm_dd(ns.date)
    except ValueError:
        return _die(f"Invalid --date (expected YYYY-MM-DD): {ns.date!r}")

    try:
        start_hour, end_hour = parse_grid_hours(ns.hours)
        window = GridWindow(start_hour=start_hour, end_hour=end_hour, slot_minutes=ns.slot)
        density = density_profile(ns.density)
    except ValueError as e:
        return _die(str(e))

    now: Optional[Instant] = None
    if ns.now:
        try:
            now = Instant.from_iso(ns.now, tz_name)
        except ValueError as e:
            return _die(f"Invalid --now value: {e}")

    in_path = Path(ns.in_json)
    if not in_path.exists():
        return _die(f"Missing input JSON: {in_path}")

    try:
        schedule = load_schedule_json(in_path, tz_name)
    except ValueError as e:
        return _die(f"Failed to load schedule: {in_path} ({e})")

    layout = build_day_layout(
        schedule.appointments,
        schedule.segments,
        day,
        window,
        tz_name,
        density,
        now=now,
        resources=ns.resource,
    )
    text = json.dumps(layout_to_dict(layout), indent=2, sort_keys=True, ensure_ascii=False)

    if ns.out:
        out_path = Path(ns.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
