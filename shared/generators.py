"""
Random secret generators - pure, side-effect-free functions.

All generators use the ``secrets`` module; a predictable reset token or
verification code is an account takeover.
"""

from __future__ import annotations

import secrets

RESET_TOKEN_BYTES = 32
VERIFICATION_CODE_MIN = 100000
VERIFICATION_CODE_MAX = 999999


def generate_reset_token(nbytes: int = RESET_TOKEN_BYTES) -> str:
    """Generate a hex-encoded reset token.

    Args:
        nbytes: Number of random bytes (default 32, never fewer).

    Returns:
        Lowercase hex string of ``2 * nbytes`` characters.
    """
    if nbytes < RESET_TOKEN_BYTES:
        raise ValueError(f"reset tokens need at least {RESET_TOKEN_BYTES} bytes")
    return secrets.token_hex(nbytes)


def generate_verification_code() -> str:
    """Generate a 6-digit numeric code, uniform over [100000, 999999]."""
    span = VERIFICATION_CODE_MAX - VERIFICATION_CODE_MIN + 1
    return str(VERIFICATION_CODE_MIN + secrets.randbelow(span))
