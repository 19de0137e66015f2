from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_utc_iso(now: Optional[datetime] = None) -> str:
    """Return now (or the given instant) as a UTC ISO 8601 string."""
    ts = now or now_utc()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


def date_number(now: Optional[datetime] = None) -> int:
    """Calendar date as a single integer, e.g. 2024-03-09 -> 20240309."""
    d = (now or now_utc()).date()
    return d.year * 10000 + d.month * 100 + d.day
