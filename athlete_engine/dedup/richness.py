"""Richness scoring for activity records.

The richness score (0.0 - 1.0) measures how much auxiliary data a record
carries. It decides which of two duplicate records becomes canonical.
"""

from __future__ import annotations

from athlete_engine.models.activity import Activity

HEART_RATE_WEIGHT = 0.40
GPS_WEIGHT = 0.20
POWER_WEIGHT = 0.20
PER_SECOND_WEIGHT = 0.10
DEVICE_WEIGHT = 0.10
CALORIES_WEIGHT = 0.05
ELEVATION_WEIGHT = 0.05

MAX_RICHNESS = 1.0


def has_heart_rate(activity: Activity) -> bool:
    return bool(
        activity.has_heart_rate_stream
        or activity.heart_rate_stream
        or (activity.avg_heart_rate is not None and activity.avg_heart_rate > 0)
        or (activity.max_heart_rate is not None and activity.max_heart_rate > 0)
    )


def richness_score(activity: Activity) -> float:
    """Score an activity's data completeness.

    Additive weights, capped at 1.0:
        - Heart rate (stream flag, samples, average or max HR): +0.40
        - GPS: +0.20
        - Power meter: +0.20
        - Per-second resolution: +0.10
        - Device metadata: +0.10
        - Non-zero calories: +0.05
        - Non-zero elevation gain: +0.05

    Args:
        activity: Activity record

    Returns:
        Richness score in [0.0, 1.0], rounded to 2 decimals

    Notes:
        - Never raises; missing fields contribute 0
        - Monotonic: adding a signal never lowers the score
    """
    score = 0.0

    if has_heart_rate(activity):
        score += HEART_RATE_WEIGHT
    if activity.has_gps:
        score += GPS_WEIGHT
    if activity.has_power:
        score += POWER_WEIGHT
    if activity.per_second_data:
        score += PER_SECOND_WEIGHT
    if activity.device_name:
        score += DEVICE_WEIGHT
    if activity.calories is not None and activity.calories > 0:
        score += CALORIES_WEIGHT
    if activity.elevation_gain is not None and activity.elevation_gain > 0:
        score += ELEVATION_WEIGHT

    return round(min(score, MAX_RICHNESS), 2)
