"""Unit tests for load interpretation helpers."""

import pytest

from athlete_engine.metrics.interpretation import (
    intensity_recommendation,
    interpret_load,
    met_category,
    normalize_load_score,
    rpe_category,
)
from athlete_engine.models.profile import FitnessLevel


class TestNormalization:
    """Test fitness-level normalization."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (FitnessLevel.BEGINNER, 30.0),
            (FitnessLevel.INTERMEDIATE, 20.0),
            (FitnessLevel.ADVANCED, 14.0),
        ],
    )
    def test_factor_per_level(self, level, expected):
        assert normalize_load_score(200.0, level) == pytest.approx(expected)

    def test_clamped_to_hundred(self):
        assert normalize_load_score(5000.0, FitnessLevel.BEGINNER) == 100.0

    def test_accepts_plain_string_level(self):
        assert normalize_load_score(200.0, "advanced") == pytest.approx(14.0)


class TestRecommendation:
    """Test intensity recommendations."""

    @pytest.mark.parametrize(
        ("score", "level", "expected"),
        [
            (40.0, FitnessLevel.INTERMEDIATE, "easy"),
            (40.0, FitnessLevel.BEGINNER, "moderate"),
            (120.0, FitnessLevel.INTERMEDIATE, "hard"),
            (150.0, FitnessLevel.ADVANCED, "hard"),
            (250.0, FitnessLevel.ADVANCED, "very_hard"),
        ],
    )
    def test_thresholds(self, score, level, expected):
        assert intensity_recommendation(score, level) == expected


class TestInterpretLoad:
    """Test load level bands."""

    @pytest.mark.parametrize(
        ("load", "level"),
        [(0.0, "low"), (49.9, "low"), (50.0, "moderate"), (100.0, "high"), (250.0, "very_high"), (-1.0, "unknown")],
    )
    def test_levels(self, load, level):
        assert interpret_load(load)[0] == level

    def test_categories(self):
        assert rpe_category(2) == "Very Easy"
        assert rpe_category(9) == "Very Hard"
        assert met_category(5.0) == "Light Intensity"
        assert met_category(10.0) == "Moderate Intensity"
        assert met_category(12.0) == "Vigorous Intensity"
