"""Rolling training load metrics (acute, chronic, balance, monotony, strain).

This module derives trend metrics from an ordered sequence of per-day load
totals (oldest first). The caller owns aggregation and storage; these
functions only compute.

Metrics:
- Acute load: 7-day exponentially weighted moving average
- Chronic load: 28-day exponentially weighted moving average
- Balance (training stress balance): chronic - acute
- Monotony: mean / (population stddev + 1)
- Strain: weekly load × monotony

Properties:
- Deterministic: Same input always produces same output
- Pure: Inputs are never mutated
- Empty input: every metric is 0.0
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from athlete_engine.config.settings import settings

ACUTE_WINDOW_DAYS = 7


@dataclass(frozen=True)
class RollingMetrics:
    """Current rolling metrics for a daily load series."""

    acute: float
    chronic: float
    balance: float
    monotony: float
    strain: float
    weekly_load: float


def smoothing_factor(tau_days: float) -> float:
    """EWMA smoothing factor: alpha = 1 - e^(-1 / tau)."""
    return 1 - math.exp(-1 / tau_days)


def ewma_series(values: Sequence[float], tau_days: float) -> list[float]:
    """Calculate exponentially weighted moving average, one value per input.

    Args:
        values: Daily values, ordered oldest to newest
        tau_days: Time constant in days (e.g., 7 for acute, 28 for chronic)

    Returns:
        List of EWMA values, one per input value

    Formula:
        alpha = 1 - exp(-1 / tau)
        ewma[t] = alpha * value[t] + (1 - alpha) * ewma[t-1]
        ewma[-1] = 0

    Notes:
        - Seeded at 0, so a short history ramps up rather than starting at the first load
        - Missing days must be passed as 0.0 (rest days), not omitted
    """
    alpha = smoothing_factor(tau_days)
    result: list[float] = []
    prev = 0.0

    for value in values:
        prev = alpha * value + (1 - alpha) * prev
        result.append(prev)

    return result


def _ewma(values: Sequence[float], tau_days: float) -> float:
    if not values:
        return 0.0
    return ewma_series(values, tau_days)[-1]


def acute(daily_loads: Sequence[float], tau_days: float | None = None) -> float:
    """Acute load: EWMA of daily loads with a 7-day time constant."""
    return _ewma(daily_loads, tau_days or settings.acute_time_constant_days)


def chronic(daily_loads: Sequence[float], tau_days: float | None = None) -> float:
    """Chronic load: EWMA of daily loads with a 28-day time constant."""
    return _ewma(daily_loads, tau_days or settings.chronic_time_constant_days)


def monotony(daily_loads: Sequence[float]) -> float:
    """Calculate training monotony.

    Formula: mean / (stddev + 1), population stddev. The +1 keeps a perfectly
    flat week finite, so a constant sequence yields its mean.

    Args:
        daily_loads: Daily load values (typically the last 7 days)

    Returns:
        Monotony score (0.0 for empty input)
    """
    if not daily_loads:
        return 0.0

    mean = sum(daily_loads) / len(daily_loads)
    variance = sum((load - mean) ** 2 for load in daily_loads) / len(daily_loads)
    return mean / (math.sqrt(variance) + 1)


def strain(monotony_score: float, weekly_load: float) -> float:
    """Training strain: weekly load × monotony."""
    return weekly_load * monotony_score


def balance(chronic_load: float, acute_load: float) -> float:
    """Training stress balance: chronic - acute. Negative means fatigue exceeds fitness."""
    return chronic_load - acute_load


def _metrics(acute_load: float, chronic_load: float, last_week: Sequence[float]) -> RollingMetrics:
    weekly_load = sum(last_week)
    monotony_score = monotony(last_week)
    return RollingMetrics(
        acute=round(acute_load, 2),
        chronic=round(chronic_load, 2),
        balance=round(balance(chronic_load, acute_load), 2),
        monotony=round(monotony_score, 2),
        strain=round(strain(monotony_score, weekly_load), 2),
        weekly_load=round(weekly_load, 2),
    )


def rolling_metrics_series(daily_loads: Sequence[float]) -> list[RollingMetrics]:
    """Rolling metrics as of each day in the series (day i sees loads[0..i]).

    Args:
        daily_loads: Daily load totals, ordered oldest to newest, gaps as 0.0

    Returns:
        One RollingMetrics per input day, rounded to 2 decimals
    """
    acute_series = ewma_series(daily_loads, settings.acute_time_constant_days)
    chronic_series = ewma_series(daily_loads, settings.chronic_time_constant_days)

    return [
        _metrics(acute_load, chronic_load, daily_loads[max(0, i - ACUTE_WINDOW_DAYS + 1) : i + 1])
        for i, (acute_load, chronic_load) in enumerate(zip(acute_series, chronic_series, strict=True))
    ]


def compute_rolling_metrics(daily_loads: Sequence[float]) -> RollingMetrics:
    """Get current (most recent) rolling metrics for a daily load series.

    Acute and chronic are computed over the whole series; monotony, weekly
    load and strain over the last 7 days.

    Returns zeros if no data available.
    """
    if not daily_loads:
        return RollingMetrics(acute=0.0, chronic=0.0, balance=0.0, monotony=0.0, strain=0.0, weekly_load=0.0)
    return _metrics(acute(daily_loads), chronic(daily_loads), daily_loads[-ACUTE_WINDOW_DAYS:])
