"""Event bus for observing goal state without a UI framework."""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Event type constants
EVENT_GOALS_CHANGED = "goals_changed"
EVENT_GOAL_COMPLETED = "goal_completed"
EVENT_GOAL_FAILED = "goal_failed"


class EventBus:
    """Pub/Sub event bus shared by the store and the orchestrator."""

    def __init__(self):
        """Initialize the event bus."""
        self._subscribers: dict[str, list[Callable[[Any], None]]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribe to an event type.

        Args:
            event_type: Event type constant (e.g., EVENT_GOALS_CHANGED)
            callback: Callback function that receives event payload

        Returns:
            Unsubscribe function
        """
        with self._lock:
            self._subscribers[event_type].append(callback)
        logger.debug(f"Subscribed to {event_type}")

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers[event_type]:
                    self._subscribers[event_type].remove(callback)
            logger.debug(f"Unsubscribed from {event_type}")

        return unsubscribe

    def publish(self, event_type: str, payload: Any) -> None:
        """
        Publish an event to all subscribers.

        A failing subscriber is logged and skipped so the others still run.
        """
        with self._lock:
            callbacks = list(self._subscribers.get(event_type, []))

        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Error in subscriber callback for {event_type}: {e}", exc_info=True)

