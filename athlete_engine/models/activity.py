"""Activity value objects consumed by deduplication and load computation.

Every optional signal is an explicit field with a defined "absent" value
(None, False or an empty container), so presence checks are plain attribute
tests. Models are frozen: merges build new instances via ``model_copy``.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from athlete_engine.core.time import ensure_utc


class ActivityType(StrEnum):
    """Canonical activity type tags."""

    RUN = "run"
    RIDE = "ride"
    SWIM = "swim"
    STRENGTH = "strength"
    SOCCER = "soccer"
    RECOVERY = "recovery"
    WALK = "walk"
    HIKE = "hike"
    YOGA = "yoga"
    OTHER = "other"


class ActivitySource(StrEnum):
    """Well-known provenance tags. Any other string is accepted as an imported source."""

    MANUAL = "manual"
    STRAVA = "strava"
    GARMIN = "garmin"


_TYPE_ALIASES: dict[str, str] = {
    "running": "run",
    "trail run": "run",
    "trailrun": "run",
    "bike": "ride",
    "cycling": "ride",
    "virtualride": "ride",
    "ebikeride": "ride",
    "swimming": "swim",
    "weighttraining": "strength",
    "weight training": "strength",
    "football": "soccer",
    "walking": "walk",
    "hiking": "hike",
}


def normalize_activity_type(activity_type: str | None) -> str | None:
    """Normalize activity type to its canonical tag.

    Lower-cases, strips whitespace and folds common provider spellings
    ("Running", "VirtualRide") onto the canonical tag. Unknown tags are kept
    as-is (lower-cased) so that exact-match comparisons stay meaningful.

    Args:
        activity_type: Raw activity type (may be None)

    Returns:
        Normalized type string or None
    """
    if activity_type is None:
        return None
    normalized = activity_type.lower().strip()
    if not normalized:
        return None
    return _TYPE_ALIASES.get(normalized, normalized)


class SourceEntry(BaseModel):
    """Provenance of one source that contributed to a (merged) activity."""

    model_config = ConfigDict(frozen=True)

    external_id: str | None = None
    richness: float = 0.0


class MergeRecord(BaseModel):
    """One merge event in an activity's merge history.

    Attributes:
        source: Source tag of the record folded into the canonical one
        external_id: External id of that record within its source
        merged_at: UTC timestamp of the merge
        filled_fields: Auxiliary fields copied from the folded record because
            the canonical record lacked them
        preserved_fields: User-authored fields taken from the folded record
    """

    model_config = ConfigDict(frozen=True)

    source: str
    external_id: str | None = None
    merged_at: datetime
    filled_fields: tuple[str, ...] = ()
    preserved_fields: tuple[str, ...] = ()


class Activity(BaseModel):
    """A single workout record from one source (or the merge of several)."""

    model_config = ConfigDict(frozen=True)

    activity_id: str | None = None
    user_id: str | None = None
    start_time: datetime | None = None
    duration_seconds: int | None = None
    activity_type: str | None = None

    # Richness signals
    has_heart_rate_stream: bool = False
    heart_rate_stream: tuple[float, ...] | None = None
    stream_interval_seconds: float = Field(default=1.0, gt=0)
    avg_heart_rate: float | None = None
    max_heart_rate: float | None = None
    has_gps: bool = False
    has_power: bool = False
    per_second_data: bool = False
    device_name: str | None = None
    calories: float | None = None
    elevation_gain: float | None = None
    distance_meters: float | None = None

    # Load inputs
    zone_minutes: dict[str, float] | None = None
    intensity: str | None = None

    # Provenance
    source: str = ActivitySource.MANUAL.value
    source_external_id: str | None = None
    created_at: datetime | None = None

    # User-authored, must survive merges
    notes: str | None = None
    subjective_exertion: float | None = None

    # Merge-only
    canonical_source: str | None = None
    source_set: dict[str, SourceEntry] = Field(default_factory=dict)
    merge_history: tuple[MergeRecord, ...] = ()

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, value: object) -> object:
        """Accept integer user ids from upstream systems."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("activity_type")
    @classmethod
    def validate_activity_type(cls, value: str | None) -> str | None:
        return normalize_activity_type(value)

    @field_validator("start_time", "created_at")
    @classmethod
    def validate_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @field_validator("source")
    @classmethod
    def validate_source(cls, value: str) -> str:
        return value.lower().strip() or ActivitySource.MANUAL.value

    @property
    def duration_minutes(self) -> float | None:
        if self.duration_seconds is None:
            return None
        return self.duration_seconds / 60.0

    @property
    def has_heart_rate_samples(self) -> bool:
        return bool(self.heart_rate_stream)

    @property
    def is_manual(self) -> bool:
        return self.source == ActivitySource.MANUAL.value
