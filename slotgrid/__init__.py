"""slotgrid Python package.

Schedule grid layout and appointment classification for salon calendars.

Public API:
  - import from `slotgrid.api` (preferred) or `import slotgrid` (re-export)
"""

from __future__ import annotations

from .api import *  # noqa: F401,F403
from . import api as _api

__all__ = list(_api.__all__)

__version__ = "0.1.0"
