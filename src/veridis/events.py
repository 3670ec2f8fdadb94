"""Event normalization: turn arbitrary producer input into a well-formed Event.

Normalization is total. Any shape of input yields an Event; missing,
blank or mistyped fields fall back to defaults instead of raising, so a
misbehaving producer can never stall ingestion.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from .models.event import Event, EventLevel, SystemStatus

DEFAULT_TYPE = "unknown"
DEFAULT_SOURCE = "unknown"
DEFAULT_MESSAGE = "Event received"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _text_or_default(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def normalize_level(value: Any) -> EventLevel:
    """Map a raw level to EventLevel, defaulting to info."""
    if isinstance(value, str):
        for level in EventLevel:
            if value == level.value:
                return level
    return EventLevel.INFO


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO8601 string into an aware UTC datetime.

    Naive values are taken as UTC. Returns None for anything unparsable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        # Offsets near year 1 or 9999 can push the UTC value out of range.
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def normalize_event(data: Any, *, now: Optional[datetime] = None) -> Event:
    """Normalize an inbound payload into an Event.

    Args:
        data: Arbitrary decoded input (usually a dict from JSON)
        now: Ingestion instant; defaults to the current UTC time

    Returns:
        A fully populated Event
    """
    ingested_at = now or _utc_now()

    if not isinstance(data, Mapping) or not data:
        return Event(
            type=DEFAULT_TYPE,
            source=DEFAULT_SOURCE,
            level=EventLevel.INFO,
            message=DEFAULT_MESSAGE,
            timestamp=ingested_at,
        )

    return Event(
        type=_text_or_default(data.get("type"), DEFAULT_TYPE),
        source=_text_or_default(data.get("source"), DEFAULT_SOURCE),
        level=normalize_level(data.get("level")),
        message=_text_or_default(data.get("message"), DEFAULT_MESSAGE),
        payload=data.get("payload"),
        timestamp=parse_timestamp(data.get("timestamp")) or ingested_at,
    )


def status_from_level(level: Optional[EventLevel]) -> SystemStatus:
    """Derive the system status from an event level."""
    if level == EventLevel.CRITICAL:
        return SystemStatus.ALERT
    if level == EventLevel.WARNING:
        return SystemStatus.PROCESSING
    return SystemStatus.IDLE
