"""Invite code generation."""

import base64
import secrets

CODE_PREFIX = "DEV-"
CODE_LENGTH = 8

# Crockford-like alphabet without the look-alikes 0/O/1/I.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

_STANDARD_BASE32 = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_TRANSLATION = str.maketrans(_STANDARD_BASE32, CODE_ALPHABET)


def random_code_body(length: int = CODE_LENGTH) -> str:
    """Return ``length`` random characters drawn from CODE_ALPHABET.

    Each character carries 5 bits; 5 random bytes give exactly 8 characters.
    """
    n_bytes = (length * 5 + 7) // 8
    encoded = base64.b32encode(secrets.token_bytes(n_bytes)).decode("ascii").rstrip("=")
    return encoded[:length].translate(_TRANSLATION)


def generate_invite_code() -> str:
    """Return a new candidate invite code, e.g. ``DEV-AB23CD45``."""
    return f"{CODE_PREFIX}{random_code_body()}"


def normalize_code(code: str) -> str:
    """Canonical lookup form for user-entered codes."""
    return str(code).strip().upper()
