"""
Time helpers shared by the pipeline and reporting layers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def export_stamp(moment: Optional[datetime] = None) -> str:
    """Return a filesystem-safe timestamp, e.g. ``20260224T150000Z``."""
    moment = moment or utcnow()
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
