"""Unit tests for rolling training load metrics.

Tests cover:
- EWMA seeding and smoothing factor
- Acute / chronic time constants
- Monotony (flat and spiky weeks)
- Strain and balance
- Empty input
"""

import math

import pytest

from athlete_engine.metrics.training_load import (
    acute,
    balance,
    chronic,
    compute_rolling_metrics,
    ewma_series,
    monotony,
    rolling_metrics_series,
    smoothing_factor,
    strain,
)


class TestEwma:
    """Test exponentially weighted moving averages."""

    def test_smoothing_factor(self):
        assert smoothing_factor(7) == pytest.approx(1 - math.exp(-1 / 7))

    def test_seeded_at_zero(self):
        series = ewma_series([100.0], 7)
        assert series == [pytest.approx(100 * smoothing_factor(7))]

    def test_one_value_per_input(self):
        assert len(ewma_series([10.0, 0.0, 20.0, 0.0], 28)) == 4

    def test_empty_input_is_zero(self):
        assert acute([]) == 0.0
        assert chronic([]) == 0.0

    def test_constant_load_converges(self):
        loads = [100.0] * 7
        assert acute(loads) == pytest.approx(100 * (1 - math.exp(-1)))
        assert chronic(loads) == pytest.approx(100 * (1 - math.exp(-7 / 28)))

    def test_acute_reacts_faster_than_chronic(self):
        loads = [0.0] * 20 + [150.0] * 5
        assert acute(loads) > chronic(loads)

    def test_custom_time_constant(self):
        loads = [50.0, 60.0, 70.0]
        assert acute(loads, tau_days=3) == pytest.approx(ewma_series(loads, 3)[-1])


class TestMonotonyStrainBalance:
    """Test weekly variability metrics."""

    def test_flat_week_monotony_equals_mean(self):
        assert monotony([100.0] * 7) == pytest.approx(100.0)

    def test_spiky_week_has_low_monotony(self):
        loads = [0.0] * 6 + [700.0]
        assert monotony(loads) == pytest.approx(100 / (math.sqrt(60000) + 1))

    def test_empty_monotony(self):
        assert monotony([]) == 0.0

    def test_strain(self):
        assert strain(2.0, 500.0) == 1000.0

    def test_balance_negative_when_fatigued(self):
        assert balance(chronic_load=40.0, acute_load=60.0) == -20.0


class TestComputeRollingMetrics:
    """Test combined metrics."""

    def test_flat_week(self):
        metrics = compute_rolling_metrics([100.0] * 7)

        assert metrics.weekly_load == 700.0
        assert metrics.monotony == 100.0
        assert metrics.strain == 70000.0
        assert metrics.acute == pytest.approx(63.21, abs=0.01)
        assert metrics.chronic == pytest.approx(22.12, abs=0.01)
        assert metrics.balance == pytest.approx(metrics.chronic - metrics.acute, abs=0.02)

    def test_weekly_window_is_last_seven_days(self):
        metrics = compute_rolling_metrics([500.0] * 3 + [10.0] * 7)

        assert metrics.weekly_load == 70.0

    def test_empty_series(self):
        metrics = compute_rolling_metrics([])

        assert metrics.acute == 0.0
        assert metrics.chronic == 0.0
        assert metrics.balance == 0.0
        assert metrics.monotony == 0.0
        assert metrics.strain == 0.0
        assert metrics.weekly_load == 0.0

    def test_series_matches_point_metrics(self):
        loads = [80.0, 0.0, 120.0, 60.0, 0.0, 150.0, 90.0, 40.0, 0.0, 110.0]
        series = rolling_metrics_series(loads)

        assert len(series) == len(loads)
        assert series[-1] == compute_rolling_metrics(loads)
        assert series[3] == compute_rolling_metrics(loads[:4])

    def test_input_not_mutated(self):
        loads = [10.0, 20.0, 30.0]
        compute_rolling_metrics(loads)
        assert loads == [10.0, 20.0, 30.0]
