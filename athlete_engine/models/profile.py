from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator


class FitnessLevel(StrEnum):
    """Self-reported fitness level. Affects normalization thresholds only."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


_FEMALE_TAGS = {"female", "f", "woman"}


def is_female(gender: str | None) -> bool:
    """Return True when the gender tag denotes female. Unspecified counts as male."""
    if not gender:
        return False
    return gender.lower().strip() in _FEMALE_TAGS


class UserProfile(BaseModel):
    """Read-only athlete profile used by load computation.

    Attributes:
        max_heart_rate: Maximum heart rate (bpm). Estimated from age/gender if absent.
        rest_heart_rate: Resting heart rate (bpm). Defaults to 60 at use-time if absent.
        age: Age in years
        gender: Gender tag ("male", "female", ...); drives the TRIMP coefficient
        fitness_level: beginner / intermediate / advanced
    """

    model_config = ConfigDict(frozen=True)

    max_heart_rate: float | None = None
    rest_heart_rate: float | None = None
    age: int | None = None
    gender: str | None = None
    fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE

    @field_validator("fitness_level", mode="before")
    @classmethod
    def default_fitness_level(cls, value: object) -> object:
        if value is None:
            return FitnessLevel.INTERMEDIATE
        if isinstance(value, str):
            return value.lower().strip()
        return value
