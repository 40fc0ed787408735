"""Goal-deconstruction orchestrator."""

import asyncio
import time
from typing import Iterable, Optional
from uuid import UUID

from fractal.core.errors import DeconstructionError, RequestFailedError
from fractal.core.event_bus import EVENT_GOAL_COMPLETED, EVENT_GOAL_FAILED
from fractal.core.events import GoalCompletedEvent, GoalFailedEvent
from fractal.core.goal_store import GoalStore
from fractal.core.llm_base import CompletionClientBase
from fractal.core.logging import StructuredLogger, get_logger
from fractal.core.prompt_builder import PromptBuilder
from fractal.schemas.goal import DateRange, Goal
from fractal.stages.step_parser import StepParser


class DeconstructionOrchestrator:
    """
    Breaks a goal into steps with an optimistic insert.

    Each request goes Pending -> Succeeded or Pending -> Failed. The pending
    goal is visible in the store as soon as ``begin`` returns; ``finalize``
    fills in its steps and ``rollback`` removes it.
    """

    def __init__(
        self,
        store: GoalStore,
        client: CompletionClientBase,
        prompt_builder: Optional[PromptBuilder] = None,
        parser: Optional[StepParser] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Goal store that owns the collection
            client: Completion client (or a test double)
            prompt_builder: Request builder (defaults to PromptBuilder())
            parser: Step parser (defaults to StepParser())
            logger: Structured logger (defaults to the shared one)
        """
        self.store = store
        self.client = client
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or StepParser()
        self.logger = logger or get_logger()
        self.current_error: Optional[DeconstructionError] = None

    def clear_error(self) -> None:
        """Dismiss the currently displayed error."""
        self.current_error = None

    def begin(self, title: str, date_range: Optional[DateRange] = None) -> Goal:
        """Insert a loading placeholder at the front of the store and return it."""
        goal = Goal.placeholder(title, date_range)
        self.store.insert(goal, at_front=True)
        self.logger.log_pipeline_stage("optimistic_insert", "completed", goal_id=str(goal.id))
        return goal

    def finalize(self, goal_id: UUID, steps: list[str]) -> Optional[Goal]:
        """Attach steps and clear the loading flag; a vanished goal is ignored."""

        def apply(goal: Goal) -> None:
            goal.steps = list(steps)
            goal.is_loading = False

        if not self.store.update(goal_id, apply):
            self.logger.info("Goal removed before its steps arrived", goal_id=str(goal_id))
            return None
        self.store.event_bus.publish(
            EVENT_GOAL_COMPLETED, GoalCompletedEvent(goal_id=goal_id, steps=list(steps))
        )
        return self.store.get(goal_id)

    def rollback(self, goal: Goal, error: DeconstructionError) -> None:
        """Remove the placeholder and surface the error."""
        self.store.remove(goal.id)
        self.current_error = error
        self.store.event_bus.publish(
            EVENT_GOAL_FAILED,
            GoalFailedEvent(
                goal_id=goal.id,
                title=goal.title,
                error_kind=error.kind,
                message=error.user_message,
            ),
        )

    async def _deconstruct(self, goal_id: UUID, title: str) -> list[str]:
        request = self.prompt_builder.build_request(title)
        self.logger.log_pipeline_stage("completion", "started", goal_id=str(goal_id))
        content = await self.client.complete(request)
        self.logger.log_pipeline_stage("completion", "completed", goal_id=str(goal_id))
        steps = self.parser.parse(content)
        self.logger.log_pipeline_stage("parse", "completed", goal_id=str(goal_id), step_count=len(steps))
        return steps

    async def add_goal(self, title: str, date_range: Optional[DateRange] = None) -> Optional[Goal]:
        """
        Create a goal and fill in its steps from the completion service.

        Returns:
            The finished goal, or None if deconstruction failed (the error is
            then available as ``current_error``)
        """
        goal = self.begin(title, date_range)
        started = time.perf_counter()

        try:
            steps = await self._deconstruct(goal.id, title)
        except DeconstructionError as e:
            error = e
        except asyncio.CancelledError:
            self.store.remove(goal.id)
            raise
        except Exception as e:
            error = RequestFailedError(str(e), cause=e)
        else:
            finished = self.finalize(goal.id, steps)
            self.logger.log_pipeline_stage(
                "reconcile",
                "completed",
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                goal_id=str(goal.id),
                step_count=len(steps),
            )
            return finished

        self.rollback(goal, error)
        self.logger.log_pipeline_stage(
            "reconcile",
            "failed",
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            goal_id=str(goal.id),
            error_kind=error.kind,
            error=str(error),
        )
        return None

    async def add_goals(
        self, titles: Iterable[str], date_range: Optional[DateRange] = None
    ) -> list[Optional[Goal]]:
        """Deconstruct several goals concurrently; each reconciles independently."""
        return list(
            await asyncio.gather(*(self.add_goal(title, date_range) for title in titles))
        )
