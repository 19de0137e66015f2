"""
Canonical timestamp handling for completion history.
All reads that sort or compare completion timestamps should use parse_to_utc_aware.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil.parser import isoparse

SECONDS_PER_DAY = 60 * 60 * 24


def parse_to_utc_aware(ts: Any) -> datetime:
    """
    Convert a timestamp (string/datetime/date/None) to timezone-aware UTC datetime.
    - naive datetime -> assume UTC
    - date -> midnight UTC
    - iso string without tz -> assume UTC
    - iso string with tz -> convert to UTC
    """
    if ts is None:
        return datetime.min.replace(tzinfo=timezone.utc)

    if isinstance(ts, datetime):
        return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)

    if isinstance(ts, date):
        return datetime(ts.year, ts.month, ts.day, tzinfo=timezone.utc)

    dt = isoparse(str(ts).strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt


def days_since(ts: Any, now: Optional[datetime] = None) -> float:
    """Fractional days elapsed between ts and now."""
    now = parse_to_utc_aware(now or datetime.now(timezone.utc))
    return (now - parse_to_utc_aware(ts)).total_seconds() / SECONDS_PER_DAY


def age_from_birth_date(birth_date: date, today: Optional[date] = None) -> int:
    """Whole years since birth_date, not counting a birthday that hasn't happened yet this year."""
    today = today or datetime.now(timezone.utc).date()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age
