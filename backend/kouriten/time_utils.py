# Overview: Timestamp helpers; everything is stored as naive UTC.

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC 'now' used for every stored timestamp."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """UTC calendar date; document numbers and default order dates use it."""
    return utcnow().date()


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse ISO-8601 text from the front end into naive UTC.

    Blank input is None. Offsets ("Z", "+08:00") are converted to UTC;
    values without an offset are taken to already be UTC. A bare date
    means midnight.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    text = (value or "").strip()
    if not text:
        return None
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_iso_datetime(text).date()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as "YYYY-MM-DDTHH:MM:SSZ" (seconds precision)."""
    if dt is None:
        return None
    return _as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"


def to_iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None
