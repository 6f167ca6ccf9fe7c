"""Tolerance-based duplicate matching.

Two records are likely duplicates when:
- Same user
- Same activity type
- Start times within ±6 minutes (inclusive)
- Durations within ±10% of the longer one (inclusive)

Deterministic and read-only.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from loguru import logger

from athlete_engine.core.errors import InvalidActivity
from athlete_engine.dedup.hashing import missing_identity_fields
from athlete_engine.models.activity import Activity

DEFAULT_TIME_TOLERANCE = timedelta(minutes=6)
DEFAULT_DURATION_TOLERANCE_RATIO = 0.10


def _require_identity(activity: Activity) -> None:
    missing = missing_identity_fields(activity, require_duration=False)
    if activity.duration_seconds is None:
        missing.append("duration_seconds")
    if missing:
        raise InvalidActivity(missing, activity_id=activity.activity_id)


def likely_duplicate(
    a: Activity,
    b: Activity,
    time_tolerance: timedelta = DEFAULT_TIME_TOLERANCE,
    duration_tolerance_ratio: float = DEFAULT_DURATION_TOLERANCE_RATIO,
) -> bool:
    """Decide whether two activities likely describe the same session.

    Rules, in order:
    1. user_id and activity_type must match exactly
    2. |start_a - start_b| <= time_tolerance
    3. Either duration is zero -> not comparable
    4. |duration_a - duration_b| <= ratio * max(duration_a, duration_b)

    Args:
        a: First activity
        b: Second activity
        time_tolerance: Maximum start-time difference (inclusive)
        duration_tolerance_ratio: Maximum duration difference as a fraction of the longer duration (inclusive)

    Returns:
        True if the activities are likely duplicates

    Raises:
        InvalidActivity: If user_id, start_time, activity_type or duration_seconds is missing on either input
    """
    _require_identity(a)
    _require_identity(b)

    if a.user_id != b.user_id or a.activity_type != b.activity_type:
        return False

    # Identity check above guarantees both start times are set
    time_diff = abs(a.start_time - b.start_time)  # type: ignore[operator]
    if time_diff > time_tolerance:
        return False

    duration_a = a.duration_seconds or 0
    duration_b = b.duration_seconds or 0
    if duration_a <= 0 or duration_b <= 0:
        return False

    duration_diff = abs(duration_a - duration_b)
    # Rounded so that exact-boundary ratios are not lost to float noise
    duration_tolerance = round(max(duration_a, duration_b) * duration_tolerance_ratio, 6)

    return duration_diff <= duration_tolerance


def find_likely_duplicates(
    activities: Iterable[Activity],
    target: Activity,
    time_tolerance: timedelta = DEFAULT_TIME_TOLERANCE,
    duration_tolerance_ratio: float = DEFAULT_DURATION_TOLERANCE_RATIO,
) -> list[Activity]:
    """Find all activities that likely duplicate a target activity.

    The target itself is skipped (matched by activity_id when both carry one,
    by identity otherwise).

    Args:
        activities: Candidate activities
        target: Activity to find duplicates for
        time_tolerance: Maximum start-time difference (inclusive)
        duration_tolerance_ratio: Maximum duration difference ratio (inclusive)

    Returns:
        Candidates that are likely duplicates, in input order
    """
    matches: list[Activity] = []
    for candidate in activities:
        if candidate is target:
            continue
        if candidate.activity_id is not None and candidate.activity_id == target.activity_id:
            continue
        if likely_duplicate(candidate, target, time_tolerance, duration_tolerance_ratio):
            matches.append(candidate)

    logger.debug(f"[DEDUP] target={target.activity_id} candidates_matched={len(matches)}")
    return matches
