# slotgrid/countdown.py
"""Human countdown to an appointment.

Thresholds are product-visible and exact:
  delta <= 0      -> "now"
  delta < 60 min  -> minutes
  delta < 24 h    -> hours (plus minutes when non-zero)
  delta >= 24 h   -> weekday + short date of the target, not a duration
"""

from __future__ import annotations

from typing import Dict

from .model import Instant
from .util.tz import DAY_MS, HOUR_MS, MIN_MS, TimezoneLike, local_datetime

_STRINGS: Dict[str, Dict[str, str]] = {
    "en": {
        "now": "now",
        "minutes": "in {m} min",
        "hours": "in {h} h",
        "hours_minutes": "in {h} h {m} min",
        "date": "{wd}, {mon} {day}",
    },
    "nb": {
        "now": "nå",
        "minutes": "om {m} min",
        "hours": "om {h} t",
        "hours_minutes": "om {h} t {m} min",
        "date": "{wd} {day}. {mon}",
    },
}

_WEEKDAYS = {
    "en": ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"),
    "nb": ("man.", "tir.", "ons.", "tor.", "fre.", "lør.", "søn."),
}

_MONTHS = {
    "en": ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"),
    "nb": ("jan.", "feb.", "mar.", "apr.", "mai", "jun.", "jul.", "aug.", "sep.", "okt.", "nov.", "des."),
}


def normalize_locale(locale: str | None) -> str:
    """"nb", "nb-NO", "no", "no-NO" -> "nb"; everything else -> "en"."""
    low = str(locale or "").strip().lower()
    if low in {"nb", "no"} or low.startswith("nb-") or low.startswith("no-"):
        return "nb"
    return "en"


def format_short_date(instant: Instant, timezone: TimezoneLike = None, locale: str = "en") -> str:
    loc = normalize_locale(locale)
    d = local_datetime(instant.ms, instant.tz if timezone is None else timezone)
    return _STRINGS[loc]["date"].format(
        wd=_WEEKDAYS[loc][d.weekday()],
        mon=_MONTHS[loc][d.month - 1],
        day=d.day,
    )


def format_countdown(now: Instant, target: Instant, timezone: TimezoneLike = None, locale: str = "en") -> str:
    loc = normalize_locale(locale)
    s = _STRINGS[loc]
    delta = target.ms - now.ms

    if delta <= 0:
        return s["now"]
    if delta < HOUR_MS:
        return s["minutes"].format(m=max(1, delta // MIN_MS))
    if delta < DAY_MS:
        h = delta // HOUR_MS
        m = (delta % HOUR_MS) // MIN_MS
        if m:
            return s["hours_minutes"].format(h=h, m=m)
        return s["hours"].format(h=h)
    return format_short_date(target, timezone, loc)
