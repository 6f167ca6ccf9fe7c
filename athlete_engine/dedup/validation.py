"""Data quality assessment for activity records.

Gives callers an explicit report before they hand records to hashing or
load computation: hard errors (identity fields missing) and soft warnings
(values that are legal but suspicious).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from athlete_engine.dedup.hashing import missing_identity_fields
from athlete_engine.models.activity import Activity

MIN_PLAUSIBLE_DURATION_S = 60
MAX_PLAUSIBLE_DURATION_S = 86_400
MIN_PLAUSIBLE_HR = 40
MAX_PLAUSIBLE_HR = 220
ZONE_DURATION_MISMATCH_MIN = 5.0


@dataclass
class ActivityValidation:
    """Validation report for one activity."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_activity(activity: Activity) -> ActivityValidation:
    """Assess data quality of an activity.

    Args:
        activity: Activity record

    Returns:
        ActivityValidation with errors and warnings

    Rules:
        - Missing user_id / start_time / duration_seconds / activity_type → error
        - Duration < 1 minute or > 24 hours → warning
        - Average HR outside 40-220 bpm → warning
        - RPE outside 1-10 → warning (it will be clamped)
        - Zone minutes differing from duration by > 5 minutes → warning
    """
    report = ActivityValidation()

    for name in missing_identity_fields(activity):
        report.errors.append(f"Missing {name}")

    duration = activity.duration_seconds
    if duration is not None and 0 < duration < MIN_PLAUSIBLE_DURATION_S:
        report.warnings.append("Very short duration (< 1 minute)")
    if duration is not None and duration > MAX_PLAUSIBLE_DURATION_S:
        report.warnings.append("Very long duration (> 24 hours)")

    avg_hr = activity.avg_heart_rate
    if avg_hr is not None and not MIN_PLAUSIBLE_HR <= avg_hr <= MAX_PLAUSIBLE_HR:
        report.warnings.append("Unusual average heart rate")

    rpe = activity.subjective_exertion
    if rpe is not None and not 1 <= rpe <= 10:
        report.warnings.append("RPE should be between 1-10")

    if activity.zone_minutes and duration:
        total_zone_minutes = sum(activity.zone_minutes.values())
        if abs(total_zone_minutes - duration / 60.0) > ZONE_DURATION_MISMATCH_MIN:
            report.warnings.append("Zone distribution minutes don't match total duration")

    return report
