"""Static per-role capability table.

Allow-sets are closed: an action absent from a role's set is denied.
``dev`` extends ``lite``; ``god`` is allowed everything.
"""

from ..models.authz import Role

LITE_ACTIONS: frozenset[str] = frozenset({
    "chat.qa.public",
    "submit.idea",
})

DEV_ACTIONS: frozenset[str] = LITE_ACTIONS | frozenset({
    "video.pipeline.run",
    "files.rw.videogen",
    "files.rw.brain",
    "n8n.workflows.run",
    "n8n.workflows.list",
})

ROLE_ACTIONS: dict[Role, frozenset[str]] = {
    Role.LITE: LITE_ACTIONS,
    Role.DEV: DEV_ACTIONS,
}


def is_allowed(role: Role, action: str) -> bool:
    """Return True if ``role`` may perform ``action``."""
    if role == Role.GOD:
        return True
    return action.strip() in ROLE_ACTIONS.get(role, frozenset())
