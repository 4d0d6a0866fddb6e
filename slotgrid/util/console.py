# slotgrid/util/console.py
from __future__ import annotations

import os
import sys
from typing import Any


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def obs_enabled() -> bool:
    v = (os.getenv("SLOTGRID_OBS_LOG", "") or "").strip().lower()
    return v in {"1", "true", "yes", "on"}


def warn(component: str, msg: str) -> None:
    eprint(f"[slotgrid.{component}] WARN: {msg}")


def info(component: str, msg: str) -> None:
    # Quiet unless SLOTGRID_OBS_LOG is set.
    if obs_enabled():
        eprint(f"[slotgrid.{component}] INFO: {msg}")
