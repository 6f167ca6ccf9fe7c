"""Heart rate utilities.

This module provides max-HR estimation, Karvonen zone thresholds and the
HR → zone mapping used to turn a raw HR stream into zone minutes.
"""

from __future__ import annotations

from collections.abc import Sequence

from athlete_engine.models.profile import is_female

DEFAULT_REST_HR = 60.0

ZONE_LABELS: tuple[str, ...] = ("z1", "z2", "z3", "z4", "z5")

# Lower bound of each zone as a fraction of heart-rate reserve (Karvonen)
ZONE_HRR_FRACTIONS: dict[str, float] = {
    "z1": 0.5,
    "z2": 0.6,
    "z3": 0.7,
    "z4": 0.8,
    "z5": 0.9,
}


def estimate_max_heart_rate(age: int | float, gender: str | None = None) -> float:
    """Estimate maximum heart rate from age and gender.

    Formula:
        female: 206 - 0.88 * age
        male / unspecified: 220 - age
    """
    if is_female(gender):
        return 206.0 - 0.88 * age
    return 220.0 - age


def heart_rate_zones(max_hr: float, rest_hr: float = DEFAULT_REST_HR) -> dict[str, float]:
    """Compute zone lower bounds (bpm) with the Karvonen method.

    Args:
        max_hr: Maximum heart rate (bpm)
        rest_hr: Resting heart rate (bpm)

    Returns:
        Zone name -> lower bound in bpm, e.g. {"z1": 120.0, ...}
    """
    reserve = max_hr - rest_hr
    return {zone: rest_hr + reserve * fraction for zone, fraction in ZONE_HRR_FRACTIONS.items()}


def map_hr_to_zone(hr: float, zones: dict[str, float]) -> str:
    """Map heart rate to training zone.

    Anything below the z2 threshold is z1; anything at or above z5's is z5.

    Args:
        hr: Heart rate in bpm
        zones: Zone lower bounds from heart_rate_zones()

    Returns:
        Zone name ("z1".."z5")
    """
    for lower, upper in zip(ZONE_LABELS, ZONE_LABELS[1:], strict=False):
        if hr < zones[upper]:
            return lower
    return ZONE_LABELS[-1]


def zone_minutes_from_stream(
    hr_stream: Sequence[float],
    max_hr: float,
    rest_hr: float = DEFAULT_REST_HR,
    interval_seconds: float = 1.0,
) -> dict[str, float]:
    """Distribute an HR stream over zones.

    Args:
        hr_stream: Heart rate samples (bpm)
        max_hr: Maximum heart rate (bpm)
        rest_hr: Resting heart rate (bpm)
        interval_seconds: Seconds between samples

    Returns:
        Zone name -> minutes spent in zone (all five zones present)
    """
    minutes: dict[str, float] = dict.fromkeys(ZONE_LABELS, 0.0)
    if not hr_stream:
        return minutes

    zones = heart_rate_zones(max_hr, rest_hr)
    sample_minutes = interval_seconds / 60.0
    for hr in hr_stream:
        minutes[map_hr_to_zone(hr, zones)] += sample_minutes

    return {zone: round(value, 2) for zone, value in minutes.items()}
