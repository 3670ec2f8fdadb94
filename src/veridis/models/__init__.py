"""Pydantic models for Veridis."""

from .authz import ActionCheck, AuthzDocument, InviteCodeRecord, Role, UserRecord
from .event import Event, EventLevel, SystemState, SystemStatus

__all__ = [
    # Events
    "Event",
    "EventLevel",
    "SystemState",
    "SystemStatus",
    # Authorization
    "Role",
    "UserRecord",
    "InviteCodeRecord",
    "AuthzDocument",
    "ActionCheck",
]
