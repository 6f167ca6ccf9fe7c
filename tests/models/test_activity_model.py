"""Unit tests for activity and profile models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from athlete_engine.models.activity import Activity, normalize_activity_type
from athlete_engine.models.profile import FitnessLevel, UserProfile, is_female


class TestActivity:
    """Test activity normalization."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Run", "run"),
            (" Running ", "run"),
            ("VirtualRide", "ride"),
            ("cycling", "ride"),
            ("Swimming", "swim"),
            ("WeightTraining", "strength"),
            ("curling", "curling"),
            ("   ", None),
            (None, None),
        ],
    )
    def test_normalize_activity_type(self, raw, expected):
        assert normalize_activity_type(raw) == expected

    def test_start_time_converted_to_utc(self, make_activity):
        local = datetime(2024, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        activity = make_activity(start_time=local)

        assert activity.start_time == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        assert activity.start_time.tzinfo == timezone.utc

    def test_integer_user_id_coerced(self, make_activity):
        assert make_activity(user_id=42).user_id == "42"

    def test_source_lower_cased(self, make_activity):
        activity = make_activity(source=" Strava ")

        assert activity.source == "strava"
        assert activity.is_manual is False

    def test_derived_properties(self, make_activity):
        activity = make_activity(duration_seconds=5400, heart_rate_stream=(140.0,))

        assert activity.duration_minutes == 90.0
        assert activity.has_heart_rate_samples is True
        assert activity.is_manual is True

    def test_frozen(self, make_activity):
        activity = make_activity()
        with pytest.raises(ValidationError):
            activity.notes = "changed"

    def test_stream_interval_must_be_positive(self, make_activity):
        with pytest.raises(ValidationError):
            make_activity(stream_interval_seconds=0)


class TestUserProfile:
    """Test profile defaults."""

    def test_defaults(self):
        profile = UserProfile()

        assert profile.max_heart_rate is None
        assert profile.fitness_level == FitnessLevel.INTERMEDIATE

    def test_fitness_level_normalized(self):
        assert UserProfile(fitness_level="Advanced").fitness_level == FitnessLevel.ADVANCED
        assert UserProfile(fitness_level=None).fitness_level == FitnessLevel.INTERMEDIATE

    @pytest.mark.parametrize(("gender", "expected"), [("female", True), ("F", True), ("male", False), (None, False)])
    def test_is_female(self, gender, expected):
        assert is_female(gender) is expected
