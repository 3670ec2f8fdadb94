"""Typed failures raised by the Veridis core.

Event ingestion never fails: malformed input degrades to defaults.
Authorization and persistence failures are raised to the caller.
"""


class VeridisError(Exception):
    """Base class for all Veridis failures."""

    code = "error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class AuthzError(VeridisError):
    """An authorization operation was refused."""

    code = "authz_error"


class Forbidden(AuthzError):
    """Caller's role does not allow the operation."""

    code = "forbidden"


class InvalidCode(AuthzError):
    """Invite code does not exist."""

    code = "invalid_code"


class CodeAlreadyUsed(AuthzError):
    """Invite code was already redeemed."""

    code = "code_already_used"


class CodeExpired(AuthzError):
    """Invite code is at or past its expiry instant."""

    code = "code_expired"


class CodeGenerationExhausted(AuthzError):
    """Every generated invite code candidate collided with an existing one."""

    code = "code_generation_exhausted"


class PersistenceFailure(VeridisError):
    """Reading or writing the authorization store failed.

    The mutation that triggered the write did not take effect.
    """

    code = "persistence_failure"
