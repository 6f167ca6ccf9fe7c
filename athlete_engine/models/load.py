"""Load computation output models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LoadMethod(StrEnum):
    """Load computation methods, in priority order."""

    HEART_RATE_IMPULSE = "HeartRateImpulse"
    ZONE_BASED = "ZoneBased"
    SUBJECTIVE_EXERTION_DURATION = "SubjectiveExertionDuration"
    METABOLIC_EQUIVALENT = "MetabolicEquivalent"


# Declared reliability per method, not a probability
METHOD_CONFIDENCE: dict[LoadMethod, float] = {
    LoadMethod.HEART_RATE_IMPULSE: 0.95,
    LoadMethod.ZONE_BASED: 0.85,
    LoadMethod.SUBJECTIVE_EXERTION_DURATION: 0.75,
    LoadMethod.METABOLIC_EQUIVALENT: 0.65,
}


class LoadResult(BaseModel):
    """Training load for a single activity.

    Scores are method-specific and not comparable across methods; callers
    must weigh them using ``method_used`` and ``confidence``.

    Attributes:
        trimp_or_equivalent_score: Non-negative load score
        method_used: Method that produced the score
        confidence: Fixed confidence for the method
        breakdown: Method intermediates (duration, HRR, zone contributions, ...)
        details: Every default, estimate and clamp applied while computing
    """

    model_config = ConfigDict(frozen=True)

    trimp_or_equivalent_score: float = Field(ge=0.0)
    method_used: LoadMethod
    confidence: float
    breakdown: dict[str, Any] = Field(default_factory=dict)
    details: dict[str, Any] = Field(default_factory=dict)
