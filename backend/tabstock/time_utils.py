from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DEFAULT_BILLING_TIMEZONE = "Europe/Paris"


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def month_key(at: Optional[datetime] = None, tz_name: str = DEFAULT_BILLING_TIMEZONE) -> str:
    """
    Calendar month of `at` as 'YYYY-MM', seen from the billing timezone.

    - None -> now
    - naive datetimes are UTC (same convention as utcnow())
    - aware datetimes are converted, so the caller's own zone never matters
    """
    if at is None:
        at = datetime.now(timezone.utc)
    elif at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)

    local = at.astimezone(ZoneInfo(tz_name))
    return f"{local.year:04d}-{local.month:02d}"
