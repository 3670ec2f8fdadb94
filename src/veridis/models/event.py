"""Pydantic models for ingested events and the derived system state."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class EventLevel(str, Enum):
    """Severity of an ingested event."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class SystemStatus(str, Enum):
    """Coarse status derived from the most recent event."""

    IDLE = "idle"
    PROCESSING = "processing"
    ALERT = "alert"


class Event(BaseModel):
    """A fully normalized event.

    Only ``payload`` may be absent; every other field carries a value
    after normalization.
    """

    type: str = Field(description="Free-text event type")
    source: str = Field(description="Producer that emitted the event")
    level: EventLevel = Field(description="Severity level")
    message: str = Field(description="Human-readable message")
    payload: Any = Field(default=None, description="Opaque producer data, passed through")
    timestamp: datetime = Field(description="Event instant (ISO8601 UTC)")

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class SystemState(BaseModel):
    """Snapshot of the hub state.

    Replaced as a whole on every append, never mutated in place.
    """

    status: SystemStatus = Field(default=SystemStatus.IDLE)
    last_event: Event | None = Field(default=None)
    recent_events: list[Event] = Field(default_factory=list, description="Oldest first")
    updated_at: datetime

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
