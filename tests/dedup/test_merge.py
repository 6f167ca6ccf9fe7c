"""Unit tests for canonical selection, merging and batch deduplication.

Tests cover:
- Canonical selection order (richness, manual, recency)
- User-authored fields survive merges
- Provenance (source_set, merge_history)
- Gap filling from the secondary record
- Batch dedup fast path and tolerance pass
"""

from datetime import UTC, datetime, timedelta

import pytest

from athlete_engine.core.errors import InvalidActivity
from athlete_engine.dedup.merge import merge, merge_duplicates, process_for_deduplication, select_canonical
from athlete_engine.dedup.richness import richness_score

MERGED_AT = datetime(2024, 1, 16, 8, 0, tzinfo=UTC)


@pytest.fixture
def manual_run(make_activity):
    return make_activity(
        activity_id="manual-1",
        avg_heart_rate=150,
        notes="Felt great",
        subjective_exertion=7,
        source="manual",
    )


@pytest.fixture
def imported_run(make_activity, session_start):
    return make_activity(
        activity_id="strava-1",
        start_time=session_start + timedelta(minutes=2),
        duration_seconds=3660,
        source="strava",
        source_external_id="10001",
        has_gps=True,
        has_heart_rate_stream=True,
        device_name="Forerunner 965",
    )


class TestSelectCanonical:
    """Test canonical selection order."""

    def test_richer_record_wins(self, manual_run, imported_run):
        assert select_canonical(manual_run, imported_run) is imported_run
        assert select_canonical(imported_run, manual_run) is imported_run

    def test_manual_wins_on_richness_tie(self, make_activity):
        manual = make_activity(activity_id="m", has_gps=True, source="manual")
        imported = make_activity(activity_id="i", has_gps=True, source="garmin")
        assert select_canonical(imported, manual) is manual
        assert select_canonical(manual, imported) is manual

    def test_more_recent_wins_on_full_tie(self, make_activity):
        older = make_activity(activity_id="old", source="strava", created_at=datetime(2024, 1, 15, 11, tzinfo=UTC))
        newer = make_activity(activity_id="new", source="garmin", created_at=datetime(2024, 1, 15, 12, tzinfo=UTC))
        assert select_canonical(older, newer) is newer
        assert select_canonical(newer, older) is newer

    def test_missing_created_at_counts_as_oldest(self, make_activity):
        undated = make_activity(activity_id="u", source="strava")
        dated = make_activity(activity_id="d", source="garmin", created_at=datetime(2024, 1, 15, 12, tzinfo=UTC))
        assert select_canonical(dated, undated) is dated


class TestMerge:
    """Test merge semantics."""

    def test_user_data_survives_when_imported_is_canonical(self, manual_run, imported_run):
        primary = select_canonical(manual_run, imported_run)
        merged = merge(primary, manual_run, merged_at=MERGED_AT)

        assert merged.canonical_source == "strava"
        assert merged.notes == "Felt great"
        assert merged.subjective_exertion == 7
        assert merged.merge_history[-1].preserved_fields == ("notes", "subjective_exertion")

    def test_primary_fields_kept_and_gaps_filled(self, manual_run, imported_run):
        merged = merge(imported_run, manual_run, merged_at=MERGED_AT)

        assert merged.activity_id == "strava-1"
        assert merged.duration_seconds == 3660
        assert merged.has_gps is True
        assert merged.has_heart_rate_stream is True
        assert merged.avg_heart_rate == 150
        assert "avg_heart_rate" in merged.merge_history[-1].filled_fields

    def test_source_set_and_history(self, manual_run, imported_run):
        merged = merge(imported_run, manual_run, merged_at=MERGED_AT)

        assert set(merged.source_set) == {"strava", "manual"}
        assert merged.source_set["strava"].external_id == "10001"
        assert merged.source_set["strava"].richness == richness_score(imported_run)
        assert merged.source_set["manual"].richness == richness_score(manual_run)
        assert len(merged.merge_history) == 1
        record = merged.merge_history[0]
        assert record.source == "manual"
        assert record.merged_at == MERGED_AT

    def test_history_accumulates_over_repeated_merges(self, manual_run, imported_run, make_activity):
        garmin = make_activity(activity_id="garmin-1", source="garmin", source_external_id="g-7", has_power=True)

        first = merge(imported_run, manual_run, merged_at=MERGED_AT)
        second = merge(first, garmin, merged_at=MERGED_AT + timedelta(hours=1))

        assert [record.source for record in second.merge_history] == ["manual", "garmin"]
        assert set(second.source_set) == {"strava", "manual", "garmin"}
        assert second.has_power is True

    def test_inputs_not_mutated(self, manual_run, imported_run):
        snapshot_manual, snapshot_imported = manual_run.model_dump(), imported_run.model_dump()

        merge(imported_run, manual_run, merged_at=MERGED_AT)

        assert manual_run.model_dump() == snapshot_manual
        assert imported_run.model_dump() == snapshot_imported

    def test_richness_never_decreases(self, manual_run, imported_run):
        merged = merge_duplicates(manual_run, imported_run, merged_at=MERGED_AT)

        assert richness_score(merged) >= richness_score(manual_run)
        assert richness_score(merged) >= richness_score(imported_run)

    def test_both_notes_are_kept(self, make_activity):
        primary = make_activity(activity_id="p", source="strava", notes="Auto-titled: Morning Run", has_gps=True)
        secondary = make_activity(activity_id="s", source="manual", notes="Windy on the bridge")

        merged = merge(primary, secondary, merged_at=MERGED_AT)

        assert "Auto-titled: Morning Run" in merged.notes
        assert "Windy on the bridge" in merged.notes

    def test_repeated_merge_does_not_duplicate_notes(self, make_activity):
        primary = make_activity(activity_id="p", source="strava", notes="X", has_gps=True)
        secondary = make_activity(activity_id="s", source="manual", notes="Y")

        once = merge(primary, secondary, merged_at=MERGED_AT)
        twice = merge(once, secondary, merged_at=MERGED_AT + timedelta(hours=1))

        assert once.notes == "X\n\nY"
        assert twice.notes == "X\n\nY"
        assert "notes" not in twice.merge_history[-1].preserved_fields

    def test_new_notes_still_appended_after_merge(self, make_activity):
        primary = make_activity(activity_id="p", source="strava", notes="X", has_gps=True)
        once = merge(primary, make_activity(activity_id="s", source="manual", notes="Y"), merged_at=MERGED_AT)

        twice = merge(once, make_activity(activity_id="g", source="garmin", notes="Z"), merged_at=MERGED_AT)

        assert twice.notes == "X\n\nY\n\nZ"

    def test_manual_exertion_preferred_over_imported(self, make_activity):
        primary = make_activity(activity_id="p", source="strava", subjective_exertion=4, has_gps=True)
        secondary = make_activity(activity_id="s", source="manual", subjective_exertion=8)

        merged = merge(primary, secondary, merged_at=MERGED_AT)

        assert merged.subjective_exertion == 8


class TestProcessForDeduplication:
    """Test batch deduplication."""

    def test_fingerprint_duplicates_are_merged(self, make_activity, session_start):
        a = make_activity(activity_id="a", source="manual", notes="easy")
        jittered = make_activity(activity_id="b", duration_seconds=3605, source="strava", has_gps=True)
        unrelated = make_activity(activity_id="c", start_time=session_start + timedelta(days=1))

        result = process_for_deduplication([a, jittered, unrelated], fuzzy=False, merged_at=MERGED_AT)

        assert result.total_processed == 3
        assert result.duplicates_found == 1
        assert [activity.activity_id for activity in result.merged_activities] == ["b", "c"]
        assert result.duplicate_pairs[0].matched_by == "fingerprint"
        assert result.merged_activities[0].notes == "easy"

    def test_tolerance_pass_catches_near_duplicates(self, manual_run, imported_run):
        result = process_for_deduplication([manual_run, imported_run], fuzzy=True, merged_at=MERGED_AT)

        assert result.duplicates_found == 1
        assert len(result.merged_activities) == 1
        pair = result.duplicate_pairs[0]
        assert pair.matched_by == "tolerance"
        assert pair.primary is imported_run
        assert pair.secondary is manual_run

    def test_fast_path_only_misses_near_duplicates(self, manual_run, imported_run):
        result = process_for_deduplication([manual_run, imported_run], fuzzy=False, merged_at=MERGED_AT)

        assert result.duplicates_found == 0
        assert result.merged_activities == [manual_run, imported_run]

    def test_empty_batch(self):
        result = process_for_deduplication([])

        assert result.merged_activities == []
        assert result.duplicates_found == 0

    def test_invalid_activity_propagates(self, make_activity):
        with pytest.raises(InvalidActivity):
            process_for_deduplication([make_activity(), make_activity(user_id=None)])

    def test_summary_is_logged(self, manual_run, imported_run, log_messages):
        process_for_deduplication([manual_run, imported_run], merged_at=MERGED_AT)

        assert any("[DEDUP] total_processed=2" in message for message in log_messages)
