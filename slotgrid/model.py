# slotgrid/model.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .util.timeparse import parse_iso_to_epoch_ms
from .util.tz import MIN_MS, TimezoneLike, local_datetime, tz_name_of


class InvalidInterval(ValueError):
    """Raised when an interval does not satisfy start < end."""


class InvalidGridWindow(ValueError):
    """Raised for a grid window with bad hours or slot size."""


SEGMENT_KINDS = ("working", "break", "buffer", "closed", "time_block", "booking")
DOMINANT_KINDS = ("closed", "break")  # precedence order: closed outranks break

STATUSES = ("pending", "confirmed", "scheduled", "completed", "cancelled", "no-show")
PROBLEM_FLAGS = ("conflict", "unpaid", "unconfirmed", "missing_contact", "new_customer")

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


@dataclass(frozen=True, eq=False)
class Instant:
    """Absolute point in time (UTC epoch ms) plus the zone it renders in.

    Equality, ordering and hashing use `ms` only.
    """

    ms: int
    tz: str = "UTC"

    @classmethod
    def from_iso(cls, s: str, tz: str = "UTC") -> "Instant":
        return cls(ms=parse_iso_to_epoch_ms(s, tz), tz=tz)

    @classmethod
    def from_datetime(cls, d: dt.datetime, tz: Optional[str] = None) -> "Instant":
        if d.tzinfo is None:
            raise ValueError("Instant.from_datetime requires an aware datetime")
        ms = (d - _EPOCH) // dt.timedelta(milliseconds=1)
        return cls(ms=ms, tz=tz or tz_name_of(d))

    def to_datetime(self, tz: TimezoneLike = None) -> dt.datetime:
        return local_datetime(self.ms, self.tz if tz is None else tz)

    def isoformat(self, tz: TimezoneLike = None) -> str:
        return self.to_datetime(tz).isoformat(timespec="minutes")

    def plus_minutes(self, minutes: float) -> "Instant":
        return Instant(ms=self.ms + int(round(minutes * MIN_MS)), tz=self.tz)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.ms == other.ms

    def __hash__(self) -> int:
        return hash(self.ms)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.ms < other.ms

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.ms <= other.ms

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.ms > other.ms

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self.ms >= other.ms


@dataclass(frozen=True)
class TimeInterval:
    start: Instant
    end: Instant

    def __post_init__(self) -> None:
        if self.start.ms >= self.end.ms:
            raise InvalidInterval(
                f"interval start must be before end (start_ms={self.start.ms}, end_ms={self.end.ms})"
            )

    @classmethod
    def from_ms(cls, start_ms: int, end_ms: int, tz: str = "UTC") -> "TimeInterval":
        return cls(Instant(int(start_ms), tz), Instant(int(end_ms), tz))

    @classmethod
    def from_iso(cls, start: str, end: str, tz: str = "UTC") -> "TimeInterval":
        return cls(Instant.from_iso(start, tz), Instant.from_iso(end, tz))

    @property
    def duration_ms(self) -> int:
        return self.end.ms - self.start.ms

    @property
    def duration_min(self) -> float:
        return self.duration_ms / MIN_MS


@dataclass(frozen=True)
class GridWindow:
    """Visible, bounded portion of a day, e.g. 08:00-20:00 in 30-minute slots."""

    start_hour: int
    end_hour: int
    slot_minutes: int = 30

    def __post_init__(self) -> None:
        if not (isinstance(self.start_hour, int) and isinstance(self.end_hour, int)):
            raise InvalidGridWindow("start_hour/end_hour must be int")
        if not (0 <= self.start_hour < self.end_hour <= 24):
            raise InvalidGridWindow(
                f"grid window must satisfy 0 <= start_hour < end_hour <= 24 "
                f"(got {self.start_hour}-{self.end_hour})"
            )
        if not isinstance(self.slot_minutes, int) or self.slot_minutes <= 0 or 60 % self.slot_minutes:
            raise InvalidGridWindow(f"slot_minutes must divide 60 evenly (got {self.slot_minutes!r})")

    @property
    def slots_per_hour(self) -> int:
        return 60 // self.slot_minutes

    @property
    def total_slots(self) -> int:
        return (self.end_hour - self.start_hour) * self.slots_per_hour

    @property
    def total_minutes(self) -> int:
        return (self.end_hour - self.start_hour) * 60


@dataclass(frozen=True)
class DensityProfile:
    """Pixel scale of a layout; never changes its temporal meaning."""

    slot_height: float
    min_card_height: float = 0.0

    def __post_init__(self) -> None:
        if self.slot_height <= 0:
            raise ValueError(f"slot_height must be > 0 (got {self.slot_height!r})")
        if self.min_card_height < 0:
            raise ValueError(f"min_card_height must be >= 0 (got {self.min_card_height!r})")


DENSITY_PRESETS: Dict[str, DensityProfile] = {
    "compact": DensityProfile(slot_height=32, min_card_height=28),
    "comfortable": DensityProfile(slot_height=48, min_card_height=40),
    "mobile": DensityProfile(slot_height=40, min_card_height=20),
}


@dataclass(frozen=True)
class ScheduleSegment:
    resource_id: str
    interval: TimeInterval
    kind: str
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if self.kind not in SEGMENT_KINDS:
            raise ValueError(f"Unknown segment kind: {self.kind!r}")


@dataclass(frozen=True)
class Appointment:
    id: str
    resource_id: str
    interval: TimeInterval
    status: str = "confirmed"
    is_walk_in: bool = False
    # Annotations computed by the appointment provider; passed through untouched.
    problems: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        if self.status not in STATUSES:
            raise ValueError(f"Unknown appointment status: {self.status!r}")
        unknown = set(self.problems) - set(PROBLEM_FLAGS)
        if unknown:
            raise ValueError(f"Unknown problem flags: {sorted(unknown)}")
        if not isinstance(self.problems, frozenset):
            object.__setattr__(self, "problems", frozenset(self.problems))

    @property
    def start(self) -> Instant:
        return self.interval.start

    @property
    def end(self) -> Instant:
        return self.interval.end


@dataclass(frozen=True)
class PlacedRect:
    top: float
    height: float


@dataclass(frozen=True)
class PlacedBooking:
    appointment: Appointment
    rect: PlacedRect
    stack_group: int
    lane: int = 0
    lanes: int = 1


@dataclass(frozen=True)
class PlacedSegment:
    segment: ScheduleSegment
    rect: PlacedRect


@dataclass(frozen=True)
class ConflictSegment:
    resource_id: str
    start_ms: int
    end_ms: int
    ids: Tuple[str, ...]
    key: str


__all__ = [
    "Appointment",
    "ConflictSegment",
    "DENSITY_PRESETS",
    "DOMINANT_KINDS",
    "DensityProfile",
    "GridWindow",
    "Instant",
    "InvalidGridWindow",
    "InvalidInterval",
    "PROBLEM_FLAGS",
    "PlacedBooking",
    "PlacedRect",
    "PlacedSegment",
    "SEGMENT_KINDS",
    "STATUSES",
    "ScheduleSegment",
    "TimeInterval",
]
