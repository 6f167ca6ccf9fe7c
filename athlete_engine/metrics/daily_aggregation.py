"""Daily aggregation of per-activity loads.

Groups activities by UTC date and sums their loads into a continuous per-day
series (rest days included as zero) that feeds the rolling metrics. Nothing
is persisted; the caller stores the aggregates if it wants them.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from loguru import logger

from athlete_engine.models.activity import Activity
from athlete_engine.models.load import LoadResult


@dataclass
class DailyAggregate:
    """Totals for one user on one UTC date."""

    date: date
    total_load: float = 0.0
    duration_seconds: int = 0
    activity_count: int = 0
    counts_by_type: Counter[str] = field(default_factory=Counter)


def aggregate_daily(
    activities: Sequence[Activity],
    loads: Sequence[LoadResult | None],
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[DailyAggregate]:
    """Aggregate activity loads by UTC date.

    Rules:
    - For each day: sum of all activity loads on that day
    - Rest day (no activities): total_load = 0
    - Activities without a load (None) count toward duration and counts, not load
    - Activities without start_time or outside the range are skipped

    Args:
        activities: Activities (already deduplicated)
        loads: Load result per activity, aligned with ``activities``
        start_date: First date (inclusive); defaults to earliest activity date
        end_date: Last date (inclusive); defaults to latest activity date

    Returns:
        One DailyAggregate per date in range, ordered chronologically

    Raises:
        ValueError: If activities and loads differ in length
    """
    if len(activities) != len(loads):
        raise ValueError(f"activities and loads must align: {len(activities)} != {len(loads)}")

    dated = [(activity, load) for activity, load in zip(activities, loads, strict=True) if activity.start_time is not None]
    skipped = len(activities) - len(dated)
    if skipped:
        logger.warning(f"[AGGREGATE] skipped {skipped} activities without start_time")

    if not dated and (start_date is None or end_date is None):
        return []

    activity_dates = [activity.start_time.date() for activity, _ in dated]  # type: ignore[union-attr]
    start_date = start_date or min(activity_dates)
    end_date = end_date or max(activity_dates)

    by_date: dict[date, DailyAggregate] = {}
    current_date = start_date
    while current_date <= end_date:
        by_date[current_date] = DailyAggregate(date=current_date)
        current_date += timedelta(days=1)

    for (activity, load), activity_date in zip(dated, activity_dates, strict=True):
        aggregate = by_date.get(activity_date)
        if aggregate is None:
            continue
        aggregate.activity_count += 1
        aggregate.duration_seconds += activity.duration_seconds or 0
        aggregate.counts_by_type[activity.activity_type or "other"] += 1
        if load is not None:
            aggregate.total_load = round(aggregate.total_load + load.trimp_or_equivalent_score, 2)

    return list(by_date.values())


def daily_load_series(aggregates: Sequence[DailyAggregate]) -> list[float]:
    """Extract the ordered daily load totals for the rolling metrics."""
    return [aggregate.total_load for aggregate in sorted(aggregates, key=lambda a: a.date)]
