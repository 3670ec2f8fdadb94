"""Pydantic models for users, invite codes and the persisted authz document."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Privilege level. Ordered lite < dev < god."""

    LITE = "lite"
    DEV = "dev"
    GOD = "god"


class UserRecord(BaseModel):
    """A known external identity and its stored role."""

    external_id: str = Field(description="External identity (e.g. chat user id)")
    name: str | None = Field(default=None)
    origin: str | None = Field(default=None)
    role: Role = Field(default=Role.LITE)
    created_at: datetime
    updated_at: datetime

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class InviteCodeRecord(BaseModel):
    """Single-use, time-limited code granting the dev role.

    ``used_at`` is unset until the code has been redeemed.
    """

    code: str = Field(description="DEV-XXXXXXXX")
    role_grant: Literal["dev"] = Field(default="dev")
    created_at: datetime
    expires_at: datetime
    created_by_external_id: str
    used_at: datetime | None = Field(default=None)
    used_by_external_id: str | None = Field(default=None)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class AuthzDocument(BaseModel):
    """The full persisted authorization store."""

    users: dict[str, UserRecord] = Field(default_factory=dict, description="Keyed by external id")
    invite_codes: dict[str, InviteCodeRecord] = Field(default_factory=dict, description="Keyed by code")

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ActionCheck(BaseModel):
    """Result of a permission check."""

    allowed: bool
    role: Role

    model_config = {"frozen": True}
