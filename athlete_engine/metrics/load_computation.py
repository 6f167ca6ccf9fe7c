"""Load computation engine for training metrics.

Computes one training-load score per activity from whatever signal the record
carries. Methods form a strict priority chain (highest fidelity first) and
are never blended:

1. HeartRateImpulse - Banister TRIMP from HR stream or average HR (confidence 0.95)
2. ZoneBased - minutes in zone × zone multiplier (confidence 0.85)
3. SubjectiveExertionDuration - session RPE × minutes (confidence 0.75)
4. MetabolicEquivalent - MET(type, intensity) × minutes × 0.8 (confidence 0.65)

Scores are not comparable across methods. Every estimate, default and clamp
applied on the way is listed in the result's ``details``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from loguru import logger

from athlete_engine.config.settings import settings
from athlete_engine.core.errors import InsufficientData
from athlete_engine.metrics.heart_rate import estimate_max_heart_rate
from athlete_engine.metrics.interpretation import met_category, rpe_category
from athlete_engine.models.activity import Activity, ActivityType
from athlete_engine.models.load import METHOD_CONFIDENCE, LoadMethod, LoadResult
from athlete_engine.models.profile import UserProfile, is_female

# TRIMP coefficients (gender-specific)
TRIMP_B_MEN = 1.92
TRIMP_B_WOMEN = 1.67
TRIMP_WEIGHTING = 0.64

# Heart-rate reserve clamp; the upper bound tolerates readings above an estimated max
HRR_MIN = 0.0
HRR_MAX = 1.2

# Linear intensity proxy: 1 minute in zone N contributes N
ZONE_MULTIPLIERS: dict[str, float] = {
    "z1": 1.0,
    "z2": 2.0,
    "z3": 3.0,
    "z4": 4.0,
    "z5": 5.0,
}

RPE_MIN = 1.0
RPE_MAX = 10.0

# MET values at moderate intensity
MET_VALUES: dict[str, float] = {
    ActivityType.RUN: 10.0,
    ActivityType.RIDE: 8.0,
    ActivityType.SWIM: 12.0,
    ActivityType.STRENGTH: 5.0,
    ActivityType.SOCCER: 10.0,
    ActivityType.RECOVERY: 3.0,
    ActivityType.WALK: 3.5,
    ActivityType.HIKE: 6.0,
    ActivityType.YOGA: 2.5,
    ActivityType.OTHER: 5.0,
}

INTENSITY_MULTIPLIERS: dict[str, float] = {
    "z1": 0.8,
    "z2": 1.0,
    "z3": 1.2,
    "z4": 1.5,
    "z5": 1.8,
}

INTENSITY_ALIASES: dict[str, str] = {
    "easy": "z1",
    "light": "z1",
    "low": "z1",
    "moderate": "z2",
    "steady": "z2",
    "tempo": "z3",
    "threshold": "z4",
    "hard": "z4",
    "high": "z4",
    "max": "z5",
    "maximal": "z5",
}

MET_LOAD_FACTOR = 0.8

# Duration-only TRIMP estimate factors by activity type
TRIMP_ESTIMATE_FACTORS: dict[str, float] = {
    ActivityType.RUN: 1.0,
    ActivityType.RIDE: 0.8,
    ActivityType.SWIM: 1.2,
    ActivityType.STRENGTH: 0.6,
    ActivityType.SOCCER: 1.1,
    ActivityType.WALK: 0.3,
    ActivityType.HIKE: 0.7,
    ActivityType.YOGA: 0.4,
    ActivityType.OTHER: 0.5,
}
DEFAULT_TRIMP_ESTIMATE_FACTOR = 0.5

_ZONE_LABEL_RE = re.compile(r"^(?:z|zone)?[\s_-]*([1-5])$")


def normalize_zone(label: str | None) -> str | None:
    """Normalize a zone label ("Z2", "zone 2", "2") to canonical "z2".

    Returns:
        Canonical zone label, or None if not recognized
    """
    if label is None:
        return None
    match = _ZONE_LABEL_RE.match(str(label).strip().lower())
    return f"z{match.group(1)}" if match else None


def gender_factor(gender: str | None) -> float:
    """TRIMP exponent coefficient: 1.67 for female, 1.92 for male/unspecified."""
    return TRIMP_B_WOMEN if is_female(gender) else TRIMP_B_MEN


@dataclass(frozen=True)
class HeartRateProfile:
    """Resolved HR bounds for a user, with an audit of estimates applied."""

    max_hr: float
    rest_hr: float
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def reserve(self) -> float:
        return self.max_hr - self.rest_hr


def resolve_heart_rate_profile(profile: UserProfile) -> HeartRateProfile:
    """Resolve max/rest HR from a profile, estimating what is missing.

    Rules:
        - max_hr missing → 220 - age (206 - 0.88 × age for female)
        - age missing as well → default age (35)
        - rest_hr missing → 60

    Args:
        profile: User profile

    Returns:
        HeartRateProfile with details recording every estimate
    """
    details: dict[str, Any] = {}

    if profile.max_heart_rate is not None and profile.max_heart_rate > 0:
        max_hr = float(profile.max_heart_rate)
        details["max_hr_estimated"] = False
    else:
        age = profile.age
        if age is None:
            age = settings.default_age
            details["age_defaulted"] = True
        max_hr = round(estimate_max_heart_rate(age, profile.gender), 1)
        details["max_hr_estimated"] = True
        details["max_hr_formula"] = "206 - 0.88 * age" if is_female(profile.gender) else "220 - age"

    if profile.rest_heart_rate is not None and profile.rest_heart_rate > 0:
        rest_hr = float(profile.rest_heart_rate)
        details["rest_hr_defaulted"] = False
    else:
        rest_hr = settings.default_rest_heart_rate
        details["rest_hr_defaulted"] = True

    details["max_hr"] = max_hr
    details["rest_hr"] = rest_hr
    return HeartRateProfile(max_hr=max_hr, rest_hr=rest_hr, details=details)


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _impulse(minutes: float, hrr: float, trimp_b: float) -> float:
    """Banister impulse for ``minutes`` spent at heart-rate reserve ``hrr``."""
    return minutes * TRIMP_WEIGHTING * math.exp(trimp_b * hrr)


def _build_result(
    method: LoadMethod,
    score: float,
    breakdown: dict[str, Any],
    details: dict[str, Any],
) -> LoadResult:
    return LoadResult(
        trimp_or_equivalent_score=round(max(0.0, score), 2),
        method_used=method,
        confidence=METHOD_CONFIDENCE[method],
        breakdown=breakdown,
        details=details,
    )


@dataclass(frozen=True)
class DeclinedMethod:
    """A method that was applicable but could not produce a score."""

    method: LoadMethod
    reason: str
    details: dict[str, Any] = field(default_factory=dict)

    def as_detail(self) -> dict[str, Any]:
        return {"method": self.method.value, "reason": self.reason, **self.details}


MethodOutcome = LoadResult | DeclinedMethod


def _has_heart_rate_signal(activity: Activity) -> bool:
    return bool(activity.heart_rate_stream) or (activity.avg_heart_rate is not None and activity.avg_heart_rate > 0)


def _compute_heart_rate_impulse(activity: Activity, profile: UserProfile, minutes: float) -> MethodOutcome:
    """Compute HR-based TRIMP.

    Formula: HRR = (HR - HR_rest) / (HR_max - HR_rest), clamped to [0, 1.2]
    Formula: TRIMP = D_min × 0.64 × e^(b × HRR)

    With an HR stream the same formula is folded over the samples, each
    sample weighing ``stream_interval_seconds / 60`` minutes. Non-positive
    samples are treated as sensor dropouts and skipped.

    Returns:
        LoadResult, or DeclinedMethod if HR bounds are unusable (max <= rest)
        or the stream holds no valid samples and there is no average HR
    """
    hr_profile = resolve_heart_rate_profile(profile)
    if hr_profile.reserve <= 0:
        logger.warning(
            f"[LOAD] HR method skipped: max_hr={hr_profile.max_hr} <= rest_hr={hr_profile.rest_hr} "
            f"activity_id={activity.activity_id}"
        )
        return DeclinedMethod(
            LoadMethod.HEART_RATE_IMPULSE,
            "max_hr_not_above_rest_hr",
            {"max_hr": hr_profile.max_hr, "rest_hr": hr_profile.rest_hr},
        )

    trimp_b = gender_factor(profile.gender)
    details: dict[str, Any] = {**hr_profile.details, "hrr_bounds": [HRR_MIN, HRR_MAX]}
    breakdown: dict[str, Any] = {"gender_factor": trimp_b, "weighting": TRIMP_WEIGHTING}

    samples = [hr for hr in activity.heart_rate_stream or () if hr > 0]
    if samples:
        sample_minutes = activity.stream_interval_seconds / 60.0
        raw_hrr = [(hr - hr_profile.rest_hr) / hr_profile.reserve for hr in samples]
        clamped_hrr = [_clamp(value, HRR_MIN, HRR_MAX) for value in raw_hrr]
        score = sum(_impulse(sample_minutes, value, trimp_b) for value in clamped_hrr)

        breakdown.update(
            {
                "mode": "stream",
                "sample_count": len(samples),
                "stream_minutes": round(len(samples) * sample_minutes, 2),
                "duration_minutes": round(minutes, 2),
                "mean_hrr": round(sum(clamped_hrr) / len(clamped_hrr), 3),
            }
        )
        details["dropped_samples"] = len(activity.heart_rate_stream or ()) - len(samples)
        details["clamped_samples"] = sum(1 for raw, kept in zip(raw_hrr, clamped_hrr, strict=True) if raw != kept)
        return _build_result(LoadMethod.HEART_RATE_IMPULSE, score, breakdown, details)

    if activity.avg_heart_rate is None or activity.avg_heart_rate <= 0:
        logger.debug(f"[LOAD] HR method declined: stream had no valid samples activity_id={activity.activity_id}")
        return DeclinedMethod(
            LoadMethod.HEART_RATE_IMPULSE,
            "no_valid_heart_rate_samples",
            {"dropped_samples": len(activity.heart_rate_stream or ())},
        )

    avg_hr = float(activity.avg_heart_rate)
    raw = (avg_hr - hr_profile.rest_hr) / hr_profile.reserve
    hrr = _clamp(raw, HRR_MIN, HRR_MAX)
    score = _impulse(minutes, hrr, trimp_b)

    breakdown.update(
        {
            "mode": "average",
            "avg_hr": avg_hr,
            "duration_minutes": round(minutes, 2),
            "hrr_fraction": round(hrr, 3),
        }
    )
    details["hrr_raw"] = round(raw, 3)
    details["hrr_clamped"] = raw != hrr
    return _build_result(LoadMethod.HEART_RATE_IMPULSE, score, breakdown, details)


def _compute_zone_based(activity: Activity, _profile: UserProfile, minutes: float) -> MethodOutcome:
    """Compute load from a per-zone minute breakdown.

    Formula: load = Σ minutes_in_zone × multiplier(zone), multipliers {1, 2, 3, 4, 5}

    Returns:
        LoadResult, or DeclinedMethod if no zone contributed any load
    """
    total = 0.0
    zones: dict[str, dict[str, float]] = {}
    ignored: list[str] = []

    for label, zone_minutes in (activity.zone_minutes or {}).items():
        zone = normalize_zone(label)
        if zone is None:
            ignored.append(label)
            continue
        if zone_minutes is None or zone_minutes <= 0:
            continue

        contribution = zone_minutes * ZONE_MULTIPLIERS[zone]
        total += contribution
        entry = zones.setdefault(zone, {"minutes": 0.0, "multiplier": ZONE_MULTIPLIERS[zone], "load_contribution": 0.0})
        entry["minutes"] = round(entry["minutes"] + zone_minutes, 2)
        entry["load_contribution"] = round(entry["load_contribution"] + contribution, 2)

    if total <= 0:
        logger.debug(f"[LOAD] zone method declined: no usable zone minutes activity_id={activity.activity_id}")
        return DeclinedMethod(LoadMethod.ZONE_BASED, "no_usable_zone_minutes", {"ignored_zones": ignored})

    zone_total_minutes = sum(entry["minutes"] for entry in zones.values())
    breakdown: dict[str, Any] = {
        "zones": zones,
        "zone_minutes_total": round(zone_total_minutes, 2),
        "duration_minutes": round(minutes, 2),
        "avg_intensity": round(total / zone_total_minutes, 3),
    }
    details: dict[str, Any] = {"ignored_zones": ignored}
    return _build_result(LoadMethod.ZONE_BASED, total, breakdown, details)


def _compute_subjective_exertion(activity: Activity, _profile: UserProfile, minutes: float) -> MethodOutcome:
    """Compute session-RPE load.

    Formula: load = clamp(RPE, 1, 10) × D_min
    """
    raw = float(activity.subjective_exertion or 0.0)
    rpe = _clamp(raw, RPE_MIN, RPE_MAX)

    breakdown: dict[str, Any] = {
        "rpe": rpe,
        "duration_minutes": round(minutes, 2),
        "calculation": f"{rpe:g} × {minutes:.2f}",
        "intensity_category": rpe_category(rpe),
    }
    details: dict[str, Any] = {"rpe_raw": raw, "rpe_clamped": raw != rpe}
    return _build_result(LoadMethod.SUBJECTIVE_EXERTION_DURATION, rpe * minutes, breakdown, details)


def _normalize_intensity(intensity: str | None) -> str | None:
    if intensity is None:
        return None
    tag = intensity.strip().lower()
    return normalize_zone(tag) or INTENSITY_ALIASES.get(tag)


def met_value(activity_type: str | None, intensity: str | None = None) -> tuple[float, dict[str, Any]]:
    """Look up the MET value for an activity type and intensity tag.

    Args:
        activity_type: Canonical activity type
        intensity: Intensity tag ("z1".."z5" or easy/moderate/tempo/hard/max)

    Returns:
        Tuple of (MET value, details recording any fallback used)
    """
    details: dict[str, Any] = {}

    if activity_type in MET_VALUES:
        base = MET_VALUES[activity_type]
        details["met_type"] = activity_type
    else:
        base = MET_VALUES[ActivityType.OTHER]
        details["met_type"] = ActivityType.OTHER.value
        details["unknown_activity_type"] = activity_type

    zone = _normalize_intensity(intensity)
    if zone is None:
        multiplier = 1.0
        details["intensity_defaulted"] = True
        if intensity is not None:
            details["unknown_intensity"] = intensity
    else:
        multiplier = INTENSITY_MULTIPLIERS[zone]
        details["intensity_defaulted"] = False
    details["intensity_zone"] = zone
    details["intensity_multiplier"] = multiplier

    return base * multiplier, details


def _compute_metabolic_equivalent(activity: Activity, _profile: UserProfile, minutes: float) -> MethodOutcome:
    """Compute MET-based load.

    Formula: load = MET(type, intensity) × D_min × 0.8
    """
    met, details = met_value(activity.activity_type, activity.intensity)
    met_minutes = met * minutes

    breakdown: dict[str, Any] = {
        "met_value": round(met, 2),
        "duration_minutes": round(minutes, 2),
        "met_minutes": round(met_minutes, 2),
        "conversion_factor": MET_LOAD_FACTOR,
        "met_category": met_category(met),
    }
    return _build_result(LoadMethod.METABOLIC_EQUIVALENT, met_minutes * MET_LOAD_FACTOR, breakdown, details)


class LoadMethodEntry(NamedTuple):
    """One step of the load priority chain."""

    method: LoadMethod
    applicable: Callable[[Activity], bool]
    compute: Callable[[Activity, UserProfile, float], MethodOutcome]


LOAD_METHODS: tuple[LoadMethodEntry, ...] = (
    LoadMethodEntry(LoadMethod.HEART_RATE_IMPULSE, _has_heart_rate_signal, _compute_heart_rate_impulse),
    LoadMethodEntry(LoadMethod.ZONE_BASED, lambda activity: bool(activity.zone_minutes), _compute_zone_based),
    LoadMethodEntry(
        LoadMethod.SUBJECTIVE_EXERTION_DURATION,
        lambda activity: activity.subjective_exertion is not None,
        _compute_subjective_exertion,
    ),
    LoadMethodEntry(LoadMethod.METABOLIC_EQUIVALENT, lambda activity: True, _compute_metabolic_equivalent),
)


def compute_load(activity: Activity, profile: UserProfile | None = None) -> LoadResult:
    """Compute the training load for a single activity.

    The first applicable method in LOAD_METHODS wins. A method may decline
    (e.g. max HR not above rest HR, no usable zone minutes), in which case the
    next one is tried and the decline is listed in the winning result's
    ``details["declined_methods"]``.

    Args:
        activity: Activity record
        profile: User profile (defaults are estimated if None)

    Returns:
        LoadResult with score, method, confidence, breakdown and details

    Raises:
        InsufficientData: If duration is missing, zero or negative
    """
    if activity.duration_seconds is None or activity.duration_seconds <= 0:
        raise InsufficientData(
            f"Activity duration must be positive for load computation "
            f"(activity_id={activity.activity_id}, duration_seconds={activity.duration_seconds})"
        )

    profile = profile or UserProfile()
    minutes = activity.duration_seconds / 60.0

    declined: list[DeclinedMethod] = []
    for entry in LOAD_METHODS:
        if not entry.applicable(activity):
            continue
        result = entry.compute(activity, profile, minutes)
        if isinstance(result, DeclinedMethod):
            declined.append(result)
            continue
        if declined:
            details = {**result.details, "declined_methods": [item.as_detail() for item in declined]}
            result = result.model_copy(update={"details": details})
        logger.debug(
            f"[LOAD] activity_id={activity.activity_id} method={result.method_used.value} "
            f"score={result.trimp_or_equivalent_score} confidence={result.confidence:.2f}"
        )
        return result

    raise InsufficientData(f"No load method applicable (activity_id={activity.activity_id})")


def compute_loads(
    activities: Iterable[Activity],
    profile: UserProfile | None = None,
    skip_insufficient: bool = False,
) -> list[LoadResult | None]:
    """Compute loads for a batch of activities.

    Args:
        activities: Activity records
        profile: User profile shared by all activities
        skip_insufficient: If True, activities without usable duration yield None
            instead of raising

    Returns:
        One entry per activity, in input order
    """
    results: list[LoadResult | None] = []
    for activity in activities:
        try:
            results.append(compute_load(activity, profile))
        except InsufficientData as e:
            if not skip_insufficient:
                raise
            logger.warning(f"[LOAD] skipped activity_id={activity.activity_id}: {e}")
            results.append(None)
    return results


def _require_duration_hours(activity: Activity) -> float:
    if activity.duration_seconds is None or activity.duration_seconds <= 0:
        raise InsufficientData(
            f"Activity duration must be positive (activity_id={activity.activity_id}, "
            f"duration_seconds={activity.duration_seconds})"
        )
    return activity.duration_seconds / 3600.0


def heart_rate_tss(activity: Activity, profile: UserProfile | None = None) -> float | None:
    """Compute heart-rate Training Stress Score (hrTSS).

    Formula: IF = (HR - HR_rest) / (HR_max - HR_rest), clamped to [0, 1.2]
    Formula: hrTSS = t_hr * IF^2 * 100

    With an HR stream, IF^2 is averaged over the valid (positive) samples;
    otherwise the average HR is used.

    Args:
        activity: Activity record
        profile: User profile (defaults are estimated if None)

    Returns:
        TSS score rounded to 0.1, or None if there is no HR data or max HR
        is not above rest HR

    Raises:
        InsufficientData: If duration is missing, zero or negative
    """
    duration_hours = _require_duration_hours(activity)
    hr_profile = resolve_heart_rate_profile(profile or UserProfile())
    if hr_profile.reserve <= 0:
        return None

    samples = [hr for hr in activity.heart_rate_stream or () if hr > 0]
    if not samples and activity.avg_heart_rate is not None and activity.avg_heart_rate > 0:
        samples = [float(activity.avg_heart_rate)]
    if not samples:
        return None

    squared = [_clamp((hr - hr_profile.rest_hr) / hr_profile.reserve, HRR_MIN, HRR_MAX) ** 2 for hr in samples]
    tss = duration_hours * (sum(squared) / len(squared)) * 100.0
    return round(tss, 1)


def estimate_trimp(activity: Activity) -> float:
    """Rough TRIMP from duration and activity type only.

    Formula: TRIMP ≈ D_min × factor(type); unknown types use 0.5

    Raises:
        InsufficientData: If duration is missing, zero or negative
    """
    minutes = _require_duration_hours(activity) * 60.0
    factor = TRIMP_ESTIMATE_FACTORS.get(activity.activity_type or "", DEFAULT_TRIMP_ESTIMATE_FACTOR)
    return round(minutes * factor, 1)
