"""Root conftest for all tests.

Shared activity/profile fixtures for the dedup and metrics suites.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import pytest
from loguru import logger

from athlete_engine.models.activity import Activity
from athlete_engine.models.profile import UserProfile


@pytest.fixture
def session_start() -> datetime:
    """Start time shared by duplicate fixtures (2024-01-15 10:00 UTC)."""
    return datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


@pytest.fixture
def make_activity(session_start) -> Callable[..., Activity]:
    """Factory for a minimal valid run; keyword arguments override fields."""

    def _make(**overrides) -> Activity:
        fields = {
            "activity_id": "activity-1",
            "user_id": "42",
            "start_time": session_start,
            "duration_seconds": 3600,
            "activity_type": "run",
            "source": "manual",
        }
        fields.update(overrides)
        return Activity(**fields)

    return _make


@pytest.fixture
def profile() -> UserProfile:
    """Male athlete with explicit HR bounds (max 190, rest 60)."""
    return UserProfile(max_heart_rate=190, rest_heart_rate=60, age=30, gender="male")


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{message}")
    yield messages
    logger.remove(handler_id)
