"""Canonical selection and merging of duplicate activities.

Merging keeps the richest record as canonical, fills its gaps from the other
record, and never drops user-authored fields (notes, subjective exertion).
Inputs are never modified; every merge returns a new Activity.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger

from athlete_engine.config.settings import settings
from athlete_engine.core.time import ensure_utc, utc_now
from athlete_engine.dedup.hashing import fingerprint
from athlete_engine.dedup.matching import likely_duplicate
from athlete_engine.dedup.richness import richness_score
from athlete_engine.models.activity import Activity, MergeRecord, SourceEntry

# Fields copied from the secondary record when the canonical one lacks them
AUXILIARY_FIELDS: tuple[str, ...] = (
    "has_heart_rate_stream",
    "heart_rate_stream",
    "avg_heart_rate",
    "max_heart_rate",
    "has_gps",
    "has_power",
    "per_second_data",
    "device_name",
    "calories",
    "elevation_gain",
    "distance_meters",
    "zone_minutes",
    "intensity",
)

NOTES_SEPARATOR = "\n\n"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class DuplicatePair:
    """One merge performed during batch deduplication."""

    primary: Activity
    secondary: Activity
    merged: Activity
    matched_by: str  # "fingerprint" | "tolerance"


@dataclass
class DeduplicationResult:
    """Batch deduplication output."""

    merged_activities: list[Activity] = field(default_factory=list)
    duplicate_pairs: list[DuplicatePair] = field(default_factory=list)
    total_processed: int = 0

    @property
    def duplicates_found(self) -> int:
        return len(self.duplicate_pairs)


def _is_present(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    if isinstance(value, (str, tuple, list, dict)):
        return len(value) > 0
    return True


def select_canonical(a: Activity, b: Activity) -> Activity:
    """Pick the record that should represent a pair of duplicates.

    Order:
    1. Higher richness score wins
    2. On tie, a manual record wins over an imported one
    3. On further tie, the more recently created record wins (missing created_at counts as oldest)

    Args:
        a: First activity
        b: Second activity

    Returns:
        The canonical activity (one of the inputs, unmodified)
    """
    richness_a = richness_score(a)
    richness_b = richness_score(b)

    if richness_a > richness_b:
        return a
    if richness_b > richness_a:
        return b

    if a.is_manual and not b.is_manual:
        return a
    if b.is_manual and not a.is_manual:
        return b

    created_a = ensure_utc(a.created_at) or _OLDEST
    created_b = ensure_utc(b.created_at) or _OLDEST
    return a if created_a > created_b else b


def _merge_notes(primary: Activity, secondary: Activity) -> tuple[str | None, bool]:
    """Combine notes so that neither side's text is lost.

    Returns:
        Tuple of (merged notes, whether secondary's notes were used)
    """
    if not secondary.notes:
        return primary.notes, False
    if not primary.notes:
        return secondary.notes, True
    # Already folded in by an earlier merge
    segments = {segment.strip() for segment in primary.notes.split(NOTES_SEPARATOR)}
    if primary.notes.strip() == secondary.notes.strip() or secondary.notes.strip() in segments:
        return primary.notes, False
    return f"{primary.notes}{NOTES_SEPARATOR}{secondary.notes}", True


def _merge_exertion(primary: Activity, secondary: Activity) -> tuple[float | None, bool]:
    """Pick the subjective exertion to keep, preferring the manually logged value.

    Returns:
        Tuple of (exertion, whether it came from the secondary record)
    """
    if secondary.subjective_exertion is None:
        return primary.subjective_exertion, False
    if primary.subjective_exertion is None:
        return secondary.subjective_exertion, True
    if secondary.is_manual and not primary.is_manual:
        return secondary.subjective_exertion, True
    return primary.subjective_exertion, False


def _merge_source_set(primary: Activity, secondary: Activity) -> dict[str, SourceEntry]:
    source_set: dict[str, SourceEntry] = dict(primary.source_set)
    source_set.setdefault(
        primary.source,
        SourceEntry(external_id=primary.source_external_id, richness=richness_score(primary)),
    )
    for source, entry in secondary.source_set.items():
        source_set.setdefault(source, entry)
    source_set.setdefault(
        secondary.source,
        SourceEntry(external_id=secondary.source_external_id, richness=richness_score(secondary)),
    )
    return source_set


def merge(primary: Activity, secondary: Activity, merged_at: datetime | None = None) -> Activity:
    """Merge a secondary duplicate into the canonical (primary) record.

    Semantics:
    - Starts as a copy of the primary record
    - Auxiliary fields missing on the primary are filled from the secondary
    - notes / subjective_exertion are kept from whichever record carries them
    - source_set gains one entry per distinct source (first seen wins)
    - merge_history appends one entry for this merge

    Args:
        primary: Canonical activity (usually from select_canonical)
        secondary: Duplicate being folded in
        merged_at: Merge timestamp (defaults to now, UTC)

    Returns:
        New merged Activity; inputs are unchanged
    """
    update: dict[str, Any] = {}
    filled: list[str] = []

    for name in AUXILIARY_FIELDS:
        if not _is_present(getattr(primary, name)) and _is_present(getattr(secondary, name)):
            update[name] = getattr(secondary, name)
            filled.append(name)
    if "heart_rate_stream" in update:
        update["stream_interval_seconds"] = secondary.stream_interval_seconds

    preserved: list[str] = []
    notes, notes_from_secondary = _merge_notes(primary, secondary)
    if notes_from_secondary:
        preserved.append("notes")
    exertion, exertion_from_secondary = _merge_exertion(primary, secondary)
    if exertion_from_secondary:
        preserved.append("subjective_exertion")

    record = MergeRecord(
        source=secondary.source,
        external_id=secondary.source_external_id,
        merged_at=ensure_utc(merged_at) or utc_now(),
        filled_fields=tuple(filled),
        preserved_fields=tuple(preserved),
    )

    update.update(
        {
            "notes": notes,
            "subjective_exertion": exertion,
            "canonical_source": primary.canonical_source or primary.source,
            "source_set": _merge_source_set(primary, secondary),
            "merge_history": (*primary.merge_history, *secondary.merge_history, record),
        }
    )

    merged = primary.model_copy(update=update)
    logger.debug(
        f"[DEDUP] merged canonical_source={merged.canonical_source} "
        f"secondary_source={secondary.source} filled={filled} preserved={preserved}"
    )
    return merged


def merge_duplicates(a: Activity, b: Activity, merged_at: datetime | None = None) -> Activity:
    """Select the canonical record of a pair and merge the other one into it."""
    primary = select_canonical(a, b)
    secondary = b if primary is a else a
    return merge(primary, secondary, merged_at=merged_at)


def process_for_deduplication(
    activities: Sequence[Activity],
    fuzzy: bool | None = None,
    time_tolerance: timedelta | None = None,
    duration_tolerance_ratio: float | None = None,
    merged_at: datetime | None = None,
) -> DeduplicationResult:
    """Deduplicate a batch of activities.

    Pass 1 (fast): activities with equal fingerprints are merged.
    Pass 2 (slow, optional): an activity whose fingerprint matches nothing is
    compared against every kept activity with likely_duplicate. This catches
    near-duplicates whose start times or durations fall in different
    fingerprint buckets, at O(n^2) cost.

    Args:
        activities: Activities to deduplicate, in caller order
        fuzzy: Run the tolerance pass (defaults to settings.dedup_fuzzy_pass)
        time_tolerance: Tolerance-pass time window (defaults to settings)
        duration_tolerance_ratio: Tolerance-pass duration ratio (defaults to settings)
        merged_at: Timestamp recorded on merge events (defaults to now, UTC)

    Returns:
        DeduplicationResult with kept activities in first-seen order

    Raises:
        InvalidActivity: If any activity lacks identity fields
    """
    if fuzzy is None:
        fuzzy = settings.dedup_fuzzy_pass
    if time_tolerance is None:
        time_tolerance = timedelta(minutes=settings.dedup_time_tolerance_minutes)
    if duration_tolerance_ratio is None:
        duration_tolerance_ratio = settings.dedup_duration_tolerance_ratio
    merged_at = ensure_utc(merged_at) or utc_now()

    result = DeduplicationResult(total_processed=len(activities))
    index_by_hash: dict[str, int] = {}

    for activity in activities:
        activity_hash = fingerprint(activity)
        matched_by = "fingerprint"
        index = index_by_hash.get(activity_hash)

        if index is None and fuzzy:
            matched_by = "tolerance"
            index = next(
                (
                    i
                    for i, kept in enumerate(result.merged_activities)
                    if likely_duplicate(kept, activity, time_tolerance, duration_tolerance_ratio)
                ),
                None,
            )

        if index is None:
            index_by_hash[activity_hash] = len(result.merged_activities)
            result.merged_activities.append(activity)
            continue

        existing = result.merged_activities[index]
        primary = select_canonical(existing, activity)
        secondary = activity if primary is existing else existing
        merged = merge(primary, secondary, merged_at=merged_at)

        result.merged_activities[index] = merged
        index_by_hash.setdefault(activity_hash, index)
        result.duplicate_pairs.append(
            DuplicatePair(primary=primary, secondary=secondary, merged=merged, matched_by=matched_by)
        )

    logger.info(
        f"[DEDUP] total_processed={result.total_processed} "
        f"kept={len(result.merged_activities)} duplicates_found={result.duplicates_found} "
        f"fuzzy={fuzzy}"
    )
    return result
