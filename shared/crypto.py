"""
Cryptographic helpers - password hashing and token hashing.

Uses argon2 for passwords (via argon2-cffi) and SHA-256 for reset tokens and
verification codes.
"""

from __future__ import annotations

import hashlib
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from config import PasswordSettings


class PasswordHashing:
    """argon2id hasher with cost parameters loaded once at startup.

    The encoded hash embeds salt, algorithm and cost, so ``verify`` needs
    nothing but the stored string.
    """

    def __init__(self, settings: Optional[PasswordSettings] = None) -> None:
        if settings is None:
            settings = PasswordSettings()
        self._hasher = PasswordHasher(
            time_cost=settings.password_time_cost,
            memory_cost=settings.password_memory_cost,
            parallelism=settings.password_parallelism,
        )

    def hash(self, plain_password: str) -> str:
        """Hash *plain_password* with argon2id.

        Returns:
            Argon2 hash string (includes algorithm parameters and salt).
        """
        return self._hasher.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        """Verify *plain_password* against an argon2 *password_hash*.

        Returns:
            ``True`` if the password matches, ``False`` for a wrong password
            or a malformed hash.
        """
        try:
            return self._hasher.verify(password_hash, plain_password)
        except (VerificationError, InvalidHashError):
            return False


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Used to hash reset tokens and verification codes before storing them in
    the database so the plaintext is never persisted.

    Args:
        token: The plaintext token string to hash.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
