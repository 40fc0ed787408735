"""In-memory goal collection with a durable JSON snapshot."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from fractal.core.event_bus import EVENT_GOALS_CHANGED, EventBus
from fractal.core.events import GoalsChangedEvent
from fractal.core.logging import StructuredLogger, get_logger
from fractal.schemas.goal import Goal

_GOAL_LIST = TypeAdapter(list[Goal])


class GoalStore:
    """
    Owns the canonical, ordered collection of goals.

    Every mutation is followed by a save so the snapshot never lags the
    in-memory state by more than one call. Persistence is best-effort:
    load and save failures are logged, never raised.
    """

    def __init__(
        self,
        snapshot_path: Path,
        event_bus: Optional[EventBus] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize goal store.

        Args:
            snapshot_path: JSON file holding the serialized goal list
            event_bus: Bus that receives goals_changed events
            logger: Structured logger (defaults to the shared one)
        """
        self.snapshot_path = snapshot_path
        self.event_bus = event_bus or EventBus()
        self.logger = logger or get_logger()
        self._goals: list[Goal] = []
        self._lock = threading.RLock()

    def list(self) -> list[Goal]:
        """Return a copy of the goals, most recent first."""
        with self._lock:
            return [goal.model_copy(deep=True) for goal in self._goals]

    def get(self, goal_id: UUID) -> Optional[Goal]:
        with self._lock:
            index = self._index_of(goal_id)
            if index is None:
                return None
            return self._goals[index].model_copy(deep=True)

    def _index_of(self, goal_id: UUID) -> Optional[int]:
        for index, goal in enumerate(self._goals):
            if goal.id == goal_id:
                return index
        return None

    def insert(self, goal: Goal, at_front: bool = True) -> None:
        """Add a goal at the front (newest first) or at the back."""
        with self._lock:
            if self._index_of(goal.id) is not None:
                raise ValueError(f"Goal {goal.id} is already in the store")
            stored = goal.model_copy(deep=True)
            if at_front:
                self._goals.insert(0, stored)
            else:
                self._goals.append(stored)
            self.save()
        self._notify("insert")

    def update(self, goal_id: UUID, mutator: Callable[[Goal], None]) -> bool:
        """
        Apply ``mutator`` to the goal with ``goal_id``.

        Returns:
            True if the goal existed and was updated, False (no-op) otherwise
        """
        with self._lock:
            index = self._index_of(goal_id)
            if index is None:
                return False
            updated = self._goals[index].model_copy(deep=True)
            mutator(updated)
            self._goals[index] = updated
            self.save()
        self._notify("update")
        return True

    def remove(self, goal_id: UUID) -> bool:
        """Remove the goal if present; removing a missing id is a no-op."""
        with self._lock:
            index = self._index_of(goal_id)
            if index is None:
                return False
            del self._goals[index]
            self.save()
        self._notify("remove")
        return True

    def remove_at(self, indices: Iterable[int]) -> list[Goal]:
        """
        Bulk-remove goals by position, keeping the survivors' relative order.

        Raises:
            IndexError: If any position is out of range (nothing is removed)
        """
        positions = set(indices)
        with self._lock:
            for position in positions:
                if not 0 <= position < len(self._goals):
                    raise IndexError(f"Goal position {position} out of range")
            removed = [goal for i, goal in enumerate(self._goals) if i in positions]
            self._goals = [goal for i, goal in enumerate(self._goals) if i not in positions]
            if removed:
                self.save()
        if removed:
            self._notify("remove_at")
        return removed

    def load(self) -> None:
        """
        Replace the in-memory goals with the snapshot.

        A missing or undecodable snapshot leaves the current goals untouched.
        """
        if not self.snapshot_path.exists():
            self.logger.debug("No goal snapshot found", path=str(self.snapshot_path))
            return
        try:
            goals = _GOAL_LIST.validate_json(self.snapshot_path.read_bytes())
        except (OSError, ValidationError, ValueError) as e:
            self.logger.warning(
                "Ignoring unreadable goal snapshot",
                path=str(self.snapshot_path),
                error=str(e),
            )
            return
        with self._lock:
            self._goals = goals
        self.logger.debug("Loaded goals", count=len(goals))
        self._notify("load")

    def save(self) -> None:
        """Write the whole collection to the snapshot; failures are logged and swallowed."""
        with self._lock:
            try:
                payload = json.dumps(
                    [goal.model_dump(mode="json") for goal in self._goals],
                    indent=2,
                    ensure_ascii=False,
                )
            except (TypeError, ValueError) as e:
                self.logger.warning("Could not encode goals", error=str(e))
                return
            try:
                self._write_atomic(payload)
            except OSError as e:
                self.logger.warning(
                    "Could not save goals",
                    path=str(self.snapshot_path),
                    error=str(e),
                )

    def _write_atomic(self, payload: str) -> None:
        self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.snapshot_path.parent, prefix=".goals-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.snapshot_path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _notify(self, reason: str) -> None:
        self.event_bus.publish(EVENT_GOALS_CHANGED, GoalsChangedEvent(goals=self.list(), reason=reason))
