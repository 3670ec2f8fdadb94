"""Bounded, order-preserving event store with derived system status."""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .events import normalize_event, status_from_level
from .models.event import Event, EventLevel, SystemState

logger = logging.getLogger(__name__)

MAX_EVENTS = 200
DEFAULT_QUERY_LIMIT = 50


class EventStore:
    """In-memory event history and current system state.

    Holds the most recent ``max_events`` events, oldest first. Each append
    publishes a brand-new SystemState under a lock, so readers never see a
    snapshot where ``status``, ``last_event`` and ``recent_events`` disagree.
    """

    def __init__(
        self,
        max_events: int = MAX_EVENTS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize an empty store.

        Args:
            max_events: Capacity of the event ring (oldest evicted first)
            clock: Returns the current UTC instant; defaults to datetime.now
        """
        if max_events < 1:
            raise ValueError("max_events must be at least 1")
        self.max_events = max_events
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._state = SystemState(updated_at=self._clock())

    def append(self, data: Any) -> SystemState:
        """Normalize and append an event, then publish the new state.

        Args:
            data: Raw event input of any shape

        Returns:
            A copy of the newly published state
        """
        event = normalize_event(data, now=self._clock())

        with self._lock:
            events = [*self._state.recent_events, event]
            if len(events) > self.max_events:
                events = events[-self.max_events:]

            self._state = SystemState(
                status=status_from_level(event.level),
                last_event=event,
                recent_events=events,
                updated_at=event.timestamp,
            )
            snapshot = self._state.model_copy(deep=True)

        logger.debug(f"Appended {event.level.value} event {event.type!r} from {event.source!r}")
        return snapshot

    def current_state(self) -> SystemState:
        """Return an independent copy of the current state."""
        with self._lock:
            return self._state.model_copy(deep=True)

    def recent_events(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Event]:
        """Return up to ``limit`` most recent events, newest first.

        ``limit`` is clamped to [1, max_events].
        """
        capped = max(1, min(limit, self.max_events))
        with self._lock:
            window = self._state.recent_events[-capped:]
            return [event.model_copy(deep=True) for event in reversed(window)]

    def recent_alerts(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Event]:
        """Return critical events among the ``limit`` most recent, newest first.

        The limit bounds the window searched, not the number of alerts
        returned: older alerts outside the window are not reported.
        """
        return [event for event in self.recent_events(limit) if event.level == EventLevel.CRITICAL]
