"""Shared fixtures."""

import pytest

from fractal.core.event_bus import EventBus
from fractal.core.goal_store import GoalStore
from fractal.schemas.goal import Goal


@pytest.fixture
def snapshot_path(tmp_path):
    """Snapshot file inside a per-test directory."""
    return tmp_path / "goals.json"


@pytest.fixture
def store(snapshot_path):
    """Empty goal store backed by a temp snapshot."""
    return GoalStore(snapshot_path, event_bus=EventBus())


@pytest.fixture
def sample_goals():
    """Three finished goals, newest first."""
    return [
        Goal(title="Launch a podcast", steps=["Pick a topic", "Buy a microphone"]),
        Goal(
            title="Learn to bake bread",
            steps=["Watch a video", "Buy flour", "Find a bowl"],
            start_month=10,
            start_year=2026,
            end_month=3,
            end_year=2027,
        ),
        Goal(title="Run a marathon", steps=["Buy running shoes"]),
    ]
