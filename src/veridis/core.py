"""Transport-agnostic operations exposed by the Veridis core."""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from .assistant import AssistantReply, assistant_query
from .authz.service import AuthzService
from .authz.store import AuthzStore
from .config import VeridisConfig
from .models.authz import ActionCheck, InviteCodeRecord, UserRecord
from .models.event import Event, SystemState
from .state import DEFAULT_QUERY_LIMIT, EventStore

logger = logging.getLogger(__name__)

SERVICE_NAME = "veridis-core"


class VeridisCore:
    """Owns one event store and one authorization service.

    Bindings (HTTP, CLI) call these methods; nothing here knows about
    transports.
    """

    def __init__(
        self,
        config: VeridisConfig,
        clock: Optional[Callable[[], datetime]] = None,
        authz: Optional[AuthzService] = None,
    ):
        self.config = config
        self.events = EventStore(max_events=config.max_events, clock=clock)
        self.authz = authz or AuthzService(
            AuthzStore(config.authz_store_path),
            privileged_ids=config.god_external_ids,
            default_ttl_hours=config.invite_ttl_hours,
            clock=clock,
        )

    @classmethod
    def from_env(cls, store_path: Optional[str] = None) -> "VeridisCore":
        return cls(VeridisConfig.from_env(store_path=store_path))

    def boot(self) -> "VeridisCore":
        """Load the authz store before serving requests."""
        self.authz.store.load()
        logger.info(
            f"{SERVICE_NAME} ready: max_events={self.config.max_events}, "
            f"{len(self.config.god_external_ids)} privileged id(s)"
        )
        return self

    def health(self) -> dict[str, Any]:
        return {"ok": True, "service": SERVICE_NAME}

    # Events

    def ingest_event(self, payload: Any) -> SystemState:
        return self.events.append(payload)

    def get_state(self) -> SystemState:
        return self.events.current_state()

    def get_events(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Event]:
        return self.events.recent_events(limit)

    def get_alerts(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Event]:
        return self.events.recent_alerts(limit)

    def assistant(self, verbose: bool = False) -> AssistantReply:
        return assistant_query(self.events.current_state(), verbose=verbose)

    # Authorization

    def onboard_user(
        self,
        external_id: str,
        name: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> UserRecord:
        return self.authz.onboard(external_id, name=name, origin=origin)

    def create_invite(self, creator_external_id: str, ttl_hours: Optional[float] = None) -> InviteCodeRecord:
        return self.authz.create_invite_code(creator_external_id, ttl_hours=ttl_hours)

    def redeem_invite(self, external_id: str, code: str) -> UserRecord:
        return self.authz.redeem_invite_code(external_id, code)

    def check_permission(self, external_id: str, action: str) -> ActionCheck:
        return self.authz.check_action(external_id, action)
