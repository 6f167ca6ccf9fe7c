"""Interpretation helpers for load scores.

Fitness level only changes how a score is read (normalization factor and
recommendation thresholds); it never changes the score itself.
"""

from __future__ import annotations

from typing import Literal

from athlete_engine.models.profile import FitnessLevel

IntensityRecommendation = Literal["easy", "moderate", "hard", "very_hard"]

NORMALIZATION_FACTORS: dict[FitnessLevel, float] = {
    FitnessLevel.BEGINNER: 1.5,
    FitnessLevel.INTERMEDIATE: 1.0,
    FitnessLevel.ADVANCED: 0.7,
}

RECOMMENDATION_THRESHOLDS: dict[FitnessLevel, tuple[float, float, float]] = {
    FitnessLevel.BEGINNER: (30.0, 60.0, 100.0),
    FitnessLevel.INTERMEDIATE: (50.0, 100.0, 150.0),
    FitnessLevel.ADVANCED: (70.0, 140.0, 200.0),
}

# (upper bound exclusive, level, description)
LOAD_LEVELS: tuple[tuple[float, str, str], ...] = (
    (50.0, "low", "Easy recovery"),
    (100.0, "moderate", "Moderate training"),
    (200.0, "high", "Hard training"),
    (float("inf"), "very_high", "Very hard training"),
)


def normalize_load_score(score: float, fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE) -> float:
    """Normalize a load score to 0-100 for the athlete's fitness level.

    Formula: clamp(score × factor / 10, 0, 100); factor is 1.5 / 1.0 / 0.7 for
    beginner / intermediate / advanced.
    """
    factor = NORMALIZATION_FACTORS[FitnessLevel(fitness_level)]
    return round(min(100.0, max(0.0, score * factor / 10.0)), 2)


def intensity_recommendation(
    score: float,
    fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE,
) -> IntensityRecommendation:
    """Classify a session's load against fitness-level thresholds."""
    low, moderate, high = RECOMMENDATION_THRESHOLDS[FitnessLevel(fitness_level)]
    if score < low:
        return "easy"
    if score < moderate:
        return "moderate"
    if score < high:
        return "hard"
    return "very_hard"


def interpret_load(load: float) -> tuple[str, str]:
    """Map a load value to (level, description)."""
    if load < 0:
        return "unknown", "Unknown load level"
    for upper, level, description in LOAD_LEVELS:
        if load < upper:
            return level, description
    return "unknown", "Unknown load level"


def rpe_category(rpe: float) -> str:
    if rpe <= 2:
        return "Very Easy"
    if rpe <= 4:
        return "Easy"
    if rpe <= 6:
        return "Moderate"
    if rpe <= 8:
        return "Hard"
    return "Very Hard"


def met_category(met: float) -> str:
    if met < 6:
        return "Light Intensity"
    if met < 12:
        return "Moderate Intensity"
    return "Vigorous Intensity"
