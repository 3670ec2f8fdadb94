"""Role-based authorization with invite-code elevation."""

from .codes import generate_invite_code
from .policy import DEV_ACTIONS, LITE_ACTIONS, is_allowed
from .service import AuthzService, parse_privileged_ids
from .store import AuthzStore

__all__ = [
    "AuthzService",
    "AuthzStore",
    "DEV_ACTIONS",
    "LITE_ACTIONS",
    "generate_invite_code",
    "is_allowed",
    "parse_privileged_ids",
]
