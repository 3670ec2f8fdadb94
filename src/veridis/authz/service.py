"""Authorization service: roles, onboarding and invite codes."""

import logging
import math
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from ..errors import (
    CodeAlreadyUsed,
    CodeExpired,
    CodeGenerationExhausted,
    Forbidden,
    InvalidCode,
)
from ..models.authz import ActionCheck, InviteCodeRecord, Role, UserRecord
from .codes import generate_invite_code, normalize_code
from .policy import is_allowed
from .store import AuthzStore

logger = logging.getLogger(__name__)

DEFAULT_INVITE_TTL_HOURS = 12.0
MAX_CODE_ATTEMPTS = 5


def parse_privileged_ids(value: Optional[str]) -> frozenset[str]:
    """Parse a comma-separated id list, ignoring blanks."""
    return frozenset(part.strip() for part in (value or "").split(",") if part.strip())


def _clean_id(external_id: str) -> str:
    cleaned = str(external_id).strip()
    if not cleaned:
        raise ValueError("external id must not be blank")
    return cleaned


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


class AuthzService:
    """Role lookup, onboarding, invite issuance/redemption and action checks.

    Every operation runs under one lock, so the read-modify-persist sequence
    of a mutation never interleaves with another caller. Privileged ids
    always resolve to ``god`` regardless of what the store says.
    """

    def __init__(
        self,
        store: AuthzStore,
        privileged_ids: Iterable[str] = (),
        default_ttl_hours: float = DEFAULT_INVITE_TTL_HOURS,
        clock: Optional[Callable[[], datetime]] = None,
        code_factory: Callable[[], str] = generate_invite_code,
    ):
        """Initialize the service.

        Args:
            store: Backing authz store (loaded lazily)
            privileged_ids: External ids that always resolve to god
            default_ttl_hours: Invite lifetime when none is requested
            clock: Returns the current UTC instant
            code_factory: Produces candidate invite codes
        """
        self.store = store
        self.privileged_ids = frozenset(i.strip() for i in privileged_ids if i.strip())
        self.default_ttl_hours = default_ttl_hours
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._code_factory = code_factory
        self._lock = threading.RLock()

    def _ensure_loaded(self) -> None:
        if not self.store.loaded:
            self.store.load()

    def is_privileged(self, external_id: str) -> bool:
        return str(external_id).strip() in self.privileged_ids

    def role_of(self, external_id: str) -> Role:
        """Resolve the effective role of an identity.

        Privileged ids win over any stored role; unknown users are lite.
        """
        external_id = str(external_id).strip()
        if external_id in self.privileged_ids:
            return Role.GOD
        with self._lock:
            self._ensure_loaded()
            user = self.store.document.users.get(external_id)
            return user.role if user else Role.LITE

    def get_user(self, external_id: str) -> Optional[UserRecord]:
        with self._lock:
            self._ensure_loaded()
            user = self.store.document.users.get(str(external_id).strip())
            return user.model_copy() if user else None

    def list_users(self) -> list[UserRecord]:
        with self._lock:
            self._ensure_loaded()
            return [user.model_copy() for user in self.store.document.users.values()]

    def onboard(
        self,
        external_id: str,
        name: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> UserRecord:
        """Create or update a user record.

        Blank name/origin keep the stored values. An existing role is kept;
        new users start as lite.

        Returns:
            The stored user record

        Raises:
            ValueError: If external_id is blank
            PersistenceFailure: If the store cannot be written
        """
        external_id = _clean_id(external_id)
        with self._lock:
            now = self._clock()
            with self.store.transaction() as doc:
                existing = doc.users.get(external_id)
                if external_id in self.privileged_ids:
                    role = Role.GOD
                elif existing is not None:
                    role = existing.role
                else:
                    role = Role.LITE

                user = UserRecord(
                    external_id=external_id,
                    name=_clean_optional(name) or (existing.name if existing else None),
                    origin=_clean_optional(origin) or (existing.origin if existing else None),
                    role=role,
                    created_at=existing.created_at if existing else now,
                    updated_at=now,
                )
                doc.users[external_id] = user

        logger.info(f"Onboarded user {external_id} with role {role.value}")
        return user.model_copy()

    def create_invite_code(
        self,
        creator_external_id: str,
        ttl_hours: Optional[float] = None,
    ) -> InviteCodeRecord:
        """Issue a new single-use dev invite code.

        Args:
            creator_external_id: Issuer; must resolve to god
            ttl_hours: Lifetime in hours; None or non-finite uses the default

        Raises:
            Forbidden: If the creator is not god
            CodeGenerationExhausted: If every candidate code collided
            PersistenceFailure: If the store cannot be written
        """
        creator = _clean_id(creator_external_id)
        if ttl_hours is None or not math.isfinite(ttl_hours):
            ttl_hours = self.default_ttl_hours

        with self._lock:
            if self.role_of(creator) != Role.GOD:
                logger.warning(f"Refused invite creation by non-god user {creator}")
                raise Forbidden("forbidden: only god can create invite codes")

            now = self._clock()
            with self.store.transaction() as doc:
                code = None
                for _ in range(MAX_CODE_ATTEMPTS):
                    candidate = self._code_factory()
                    if candidate not in doc.invite_codes:
                        code = candidate
                        break
                if code is None:
                    raise CodeGenerationExhausted(
                        f"could not generate a unique invite code after {MAX_CODE_ATTEMPTS} attempts"
                    )

                try:
                    expires_at = now + timedelta(hours=ttl_hours)
                except OverflowError as e:
                    raise ValueError(f"ttl_hours out of range: {ttl_hours}") from e

                record = InviteCodeRecord(
                    code=code,
                    created_at=now,
                    expires_at=expires_at,
                    created_by_external_id=creator,
                )
                doc.invite_codes[code] = record

        logger.info(f"Invite code {code} issued by {creator}, expires {record.expires_at.isoformat()}")
        return record.model_copy()

    def redeem_invite_code(self, external_id: str, code: str) -> UserRecord:
        """Redeem an invite code, granting the dev role.

        The code is marked used and the user updated in a single write.
        Privileged redeemers keep god.

        Raises:
            InvalidCode: If the code is unknown
            CodeAlreadyUsed: If the code was redeemed before
            CodeExpired: If now is at or past the code's expiry
            PersistenceFailure: If the store cannot be written
        """
        external_id = _clean_id(external_id)
        code = normalize_code(code)

        with self._lock:
            now = self._clock()
            with self.store.transaction() as doc:
                record = doc.invite_codes.get(code)
                if record is None:
                    raise InvalidCode("invalid_code: unknown invite code")
                if record.is_used:
                    raise CodeAlreadyUsed("code_already_used: invite code was already redeemed")
                if record.is_expired(now):
                    raise CodeExpired("code_expired: invite code has expired")

                record.used_at = now
                record.used_by_external_id = external_id

                existing = doc.users.get(external_id)
                role = Role.GOD if external_id in self.privileged_ids else Role(record.role_grant)
                user = UserRecord(
                    external_id=external_id,
                    name=existing.name if existing else None,
                    origin=existing.origin if existing else None,
                    role=role,
                    created_at=existing.created_at if existing else now,
                    updated_at=now,
                )
                doc.users[external_id] = user

        logger.info(f"Invite code {code} redeemed by {external_id}, role now {role.value}")
        return user.model_copy()

    def check_action(self, external_id: str, action: str) -> ActionCheck:
        """Check whether an identity may perform an action."""
        role = self.role_of(external_id)
        return ActionCheck(allowed=is_allowed(role, str(action)), role=role)
