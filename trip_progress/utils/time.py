"""
Timestamp helpers for trip records.

Trip records carry ``started_at`` and ``last_updated`` as timezone-aware UTC
datetimes in memory and as ISO8601 strings on disk.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current wall-clock time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """
    Format a timestamp for persistence and sync payloads.

    Naive datetimes are assumed to already be UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str], fallback: Optional[datetime] = None) -> datetime:
    """
    Parse an ISO8601 timestamp written by this package or by a browser client.

    Browser clients write a trailing ``Z`` (``2024-03-01T08:00:00.000Z``),
    which older interpreters do not accept in ``fromisoformat``.

    Args:
        value: ISO8601 string, or None
        fallback: Returned when value is empty; defaults to now

    Returns:
        Timezone-aware UTC datetime

    Raises:
        ValueError: If value is not a valid ISO8601 timestamp
    """
    if not value:
        return fallback if fallback is not None else utc_now()

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
