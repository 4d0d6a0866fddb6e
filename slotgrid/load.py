# slotgrid/load.py
"""Provider records (JSON-shaped dicts) -> immutable schedule entities."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

from .model import PROBLEM_FLAGS, Appointment, Instant, ScheduleSegment, TimeInterval
from .util.console import info, warn
from .util.timeparse import parse_iso_to_epoch_ms

JsonPath = Union[str, Path]

_STATUS_ALIASES = {"no_show": "no-show", "noshow": "no-show", "canceled": "cancelled"}


class RecordError(ValueError):
    """Raised for a provider record that cannot be turned into an entity."""


@dataclass(frozen=True)
class Schedule:
    appointments: Tuple[Appointment, ...]
    segments: Tuple[ScheduleSegment, ...]


def _instant(rec: Mapping[str, Any], keys: Tuple[str, ...], tz: str, label: str) -> Instant:
    for k in keys:
        v = rec.get(k)
        if v is None:
            continue
        if isinstance(v, bool):
            break
        if isinstance(v, int):
            return Instant(ms=v, tz=tz)
        try:
            return Instant(ms=parse_iso_to_epoch_ms(str(v), tz), tz=tz)
        except ValueError as ex:
            raise RecordError(f"{label}: invalid {k}: {v!r}") from ex
    raise RecordError(f"{label}: missing {' / '.join(keys)}")


def _resource_id(rec: Mapping[str, Any], label: str) -> str:
    rid = rec.get("resource_id") or rec.get("employee_id")
    if not isinstance(rid, (str, int)) or str(rid).strip() == "":
        raise RecordError(f"{label}: missing resource_id/employee_id")
    return str(rid)


def appointment_from_record(rec: Mapping[str, Any], tz: str = "UTC") -> Appointment:
    """Build an Appointment from a provider record.

    A backwards interval raises InvalidInterval (never repaired). Unknown problem
    flags are dropped with a WARN.
    """
    if not isinstance(rec, Mapping):
        raise RecordError(f"appointment record must be an object; got {type(rec).__name__}")
    appt_id = str(rec.get("id") or "").strip()
    if not appt_id:
        raise RecordError("appointment: missing id")
    label = f"appointment {appt_id!r}"

    start = _instant(rec, ("start_time", "start", "start_ms"), tz, label)
    end = _instant(rec, ("end_time", "end", "end_ms"), tz, label)

    status = str(rec.get("status") or "confirmed").strip().lower()
    status = _STATUS_ALIASES.get(status, status)

    raw_problems = rec.get("problems") or []
    if not isinstance(raw_problems, (list, tuple, set, frozenset)):
        raise RecordError(f"{label}: problems must be a list")
    problems = set()
    for p in raw_problems:
        if p in PROBLEM_FLAGS:
            problems.add(p)
        else:
            warn("load", f"dropping unknown problem flag {p!r} on {label}")

    interval = TimeInterval(start, end)
    resource_id = _resource_id(rec, label)
    try:
        return Appointment(
            id=appt_id,
            resource_id=resource_id,
            interval=interval,
            status=status,
            is_walk_in=bool(rec.get("is_walk_in", False)),
            problems=frozenset(problems),
        )
    except ValueError as ex:
        raise RecordError(f"{label}: {ex}") from ex


def segment_from_record(rec: Mapping[str, Any], tz: str = "UTC") -> ScheduleSegment:
    if not isinstance(rec, Mapping):
        raise RecordError(f"segment record must be an object; got {type(rec).__name__}")
    label = "segment"
    kind = str(rec.get("segment_type") or rec.get("kind") or "").strip().lower()
    start = _instant(rec, ("start_time", "start", "start_ms"), tz, label)
    end = _instant(rec, ("end_time", "end", "end_ms"), tz, label)
    metadata = rec.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise RecordError(f"{label}: metadata must be an object")
    interval = TimeInterval(start, end)
    resource_id = _resource_id(rec, label)
    try:
        return ScheduleSegment(
            resource_id=resource_id,
            interval=interval,
            kind=kind,
            metadata=dict(metadata),
        )
    except ValueError as ex:
        raise RecordError(f"{label}: {ex}") from ex


def load_schedule(obj: Mapping[str, Any], tz: str = "UTC") -> Schedule:
    """Read {"appointments": [...], "segments": [...]}; both lists are optional."""
    if not isinstance(obj, Mapping):
        raise RecordError(f"schedule must be a JSON object; got {type(obj).__name__}")
    appts_raw = obj.get("appointments") or obj.get("bookings") or []
    segs_raw = obj.get("segments") or []
    if not isinstance(appts_raw, list) or not isinstance(segs_raw, list):
        raise RecordError("appointments/segments must be lists")

    appointments: List[Appointment] = [appointment_from_record(r, tz) for r in appts_raw]
    segments: List[ScheduleSegment] = [segment_from_record(r, tz) for r in segs_raw]
    info("load", f"schedule.ok appointments={len(appointments)} segments={len(segments)}")
    return Schedule(appointments=tuple(appointments), segments=tuple(segments))


def load_schedule_json(path: JsonPath, tz: str = "UTC") -> Schedule:
    p = Path(path)
    try:
        obj: Dict[str, Any] = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as ex:
        raise RecordError(f"{p}: invalid JSON ({ex})") from ex
    return load_schedule(obj, tz)
