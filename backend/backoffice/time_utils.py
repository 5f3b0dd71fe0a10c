from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Callable, Optional

# A clock is any zero-argument callable returning a naive UTC datetime.
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Query-string timestamp -> naive UTC datetime (None when blank).

    A bare date means midnight; offsets, including a trailing Z, are
    converted to UTC. Raises ValueError on anything else.
    """
    if _blank(value):
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """'YYYY-MM-DD' -> date; None / "" -> None."""
    if _blank(value):
        return None
    return date.fromisoformat(value.strip()[:10])


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def calendar_days_between(earlier: datetime, later: datetime) -> int:
    """Whole calendar days from `earlier` to `later`, both taken at midnight."""
    return (start_of_day(later) - start_of_day(earlier)).days


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """JSON timestamp: whole seconds, UTC, 'Z' suffix. Naive values are already UTC."""
    if dt is None:
        return None
    stamp = _as_naive_utc(dt).replace(microsecond=0)
    return f"{stamp.isoformat()}Z"
