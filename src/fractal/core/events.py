"""Event type definitions for the event bus."""

from dataclasses import dataclass
from typing import Any
from uuid import UUID


@dataclass
class GoalsChangedEvent:
    """Event emitted after every store mutation or load."""
    goals: list[Any]
    reason: str


@dataclass
class GoalCompletedEvent:
    """Event emitted when a goal receives its steps."""
    goal_id: UUID
    steps: list[str]


@dataclass
class GoalFailedEvent:
    """Event emitted when deconstruction fails and the placeholder is removed."""
    goal_id: UUID
    title: str
    error_kind: str
    message: str
