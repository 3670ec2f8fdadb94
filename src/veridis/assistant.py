"""Short human-readable summary of the system state."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .events import status_from_level
from .models.event import Event, EventLevel, SystemState, SystemStatus

VERBOSE_EVENT_COUNT = 10

SUGGESTED_ACTIONS: dict[SystemStatus, list[str]] = {
    SystemStatus.ALERT: ["Review alert details", "Run the relevant runbook", "Notify owner"],
    SystemStatus.PROCESSING: ["Monitor progress", "Check event stream", "Wait for completion"],
    SystemStatus.IDLE: ["Check system status", "Emit a test event", "Review recent changes"],
}


class AssistantReply(BaseModel):
    ok: bool = True
    status: SystemStatus
    summary: str
    suggested_actions: list[str]
    updated_at: datetime
    last_event: Optional[Event] = None
    recent_events: Optional[list[Event]] = Field(default=None, description="Newest first, verbose only")

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


def build_summary(last_event: Optional[Event]) -> str:
    if last_event is None:
        return "System is idle. No recent activity."
    if last_event.level == EventLevel.CRITICAL:
        return f"Critical alert: {last_event.message}"
    if last_event.level == EventLevel.WARNING:
        return f"Attention required: {last_event.message}"
    return f"Info: {last_event.message}"


def assistant_query(state: SystemState, verbose: bool = False) -> AssistantReply:
    """Summarize a state snapshot.

    Status is re-derived from the last event's level rather than read from
    ``state.status``.
    """
    last_event = state.last_event
    status = status_from_level(last_event.level if last_event else None)

    reply = AssistantReply(
        status=status,
        summary=build_summary(last_event),
        suggested_actions=list(SUGGESTED_ACTIONS[status]),
        updated_at=state.updated_at,
        last_event=last_event,
    )
    if verbose:
        reply.recent_events = list(reversed(state.recent_events[-VERBOSE_EVENT_COUNT:]))
    return reply
