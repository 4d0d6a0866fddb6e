#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from slotgrid.api import agenda
from slotgrid.classify import BUCKET_NAMES
from slotgrid.load import load_schedule_json
from slotgrid.model import Appointment, Instant
from slotgrid.util.tz import normalize_tz_name, resolve_tz


def _die(msg: str, rc: int = 2) -> int:
    print(f"[slotgrid-agenda] ERROR: {msg}", file=sys.stderr)
    return rc


def _appt_row(a: Appointment) -> Dict[str, Any]:
    return {
        "id": a.id,
        "resource_id": a.resource_id,
        "status": a.status,
        "start": a.start.isoformat(),
        "end": a.end.isoformat(),
    }


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="slotgrid-agenda",
        description="Classify a schedule's appointments into buckets and show the next one with its countdown.",
    )
    ap.add_argument("--in", dest="in_json", required=True, help="Input schedule JSON path")
    ap.add_argument("--now", required=True, help="Current time (ISO-8601)")
    ap.add_argument(
        "--tz",
        default=os.getenv("SLOTGRID_TZ", "UTC"),
        help="Calendar timezone for today/tomorrow/week (default: env SLOTGRID_TZ or 'UTC')",
    )
    ap.add_argument("--locale", default="en", help="Countdown language: en or nb (default: en)")
    ap.add_argument("--counts-only", action="store_true", help="Print bucket sizes instead of members")
    ns = ap.parse_args(argv)

    tz_name = normalize_tz_name(ns.tz)
    try:
        resolve_tz(tz_name)
    except ValueError as e:
        return _die(f"Invalid --tz value: {e}")

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

    res = agenda(schedule.appointments, now, tz_name, locale=ns.locale)
    nxt = res["next"]
    out: Dict[str, Any] = {
        "now": now.isoformat(),
        "tz": tz_name,
        "counts": res["counts"],
        "next": _appt_row(nxt) if nxt is not None else None,
        "countdown": res["countdown"],
    }
    if not ns.counts_only:
        out["buckets"] = {name: [a.id for a in res["buckets"][name]] for name in BUCKET_NAMES}

    print(json.dumps(out, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
