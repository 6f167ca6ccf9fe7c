"""Deduplication fingerprints.

A fingerprint is a fast first-pass duplicate filter: records of the same
session from different sources usually agree on user, start time and type,
and differ only by sub-minute duration jitter.
"""

from __future__ import annotations

import hashlib
import math
from datetime import datetime
from typing import cast

from athlete_engine.core.errors import InvalidActivity
from athlete_engine.core.time import ensure_utc
from athlete_engine.models.activity import Activity

FINGERPRINT_LENGTH = 32


def missing_identity_fields(activity: Activity, *, require_duration: bool = True) -> list[str]:
    """List identity fields that are missing on an activity.

    Args:
        activity: Activity record
        require_duration: Whether a missing/non-positive duration counts

    Returns:
        Missing field names, in declaration order (empty if complete)
    """
    missing: list[str] = []
    if not activity.user_id:
        missing.append("user_id")
    if activity.start_time is None:
        missing.append("start_time")
    if require_duration and (activity.duration_seconds is None or activity.duration_seconds <= 0):
        missing.append("duration_seconds")
    if not activity.activity_type:
        missing.append("activity_type")
    return missing


def duration_bucket_minutes(duration_seconds: int) -> int:
    """Round a duration to the nearest whole minute (half rounds up)."""
    return math.floor(duration_seconds / 60 + 0.5)


def fingerprint(activity: Activity) -> str:
    """Build the deduplication fingerprint for an activity.

    Hash input: ``user_id|start_time(ISO-8601, UTC)|duration_minutes|activity_type``

    Args:
        activity: Activity record

    Returns:
        Hex SHA-256 digest truncated to 32 characters

    Raises:
        InvalidActivity: If user_id, start_time, duration_seconds or activity_type is missing
    """
    missing = missing_identity_fields(activity)
    if missing:
        raise InvalidActivity(missing, activity_id=activity.activity_id)

    start_time = cast(datetime, ensure_utc(activity.start_time))
    minutes = duration_bucket_minutes(cast(int, activity.duration_seconds))
    content = f"{activity.user_id}|{start_time.isoformat()}|{minutes}|{activity.activity_type}"
    return hashlib.sha256(content.encode()).hexdigest()[:FINGERPRINT_LENGTH]
