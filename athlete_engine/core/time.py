from __future__ import annotations

from datetime import datetime, timezone


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize datetime to UTC-aware.

    Converts naive datetimes to UTC-aware, and converts aware datetimes to UTC.
    Returns None if input is None.

    Args:
        dt: Datetime to normalize (may be naive or aware)

    Returns:
        UTC-aware datetime, or None if input was None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)
