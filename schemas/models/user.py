"""
User document model.

Maps to the `users` MongoDB collection.

The recovery fields move null → set → null across a completed password
reset; an abandoned flow leaves them set until they expire. Expiry is
checked when reading, nothing sweeps them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, field_validator

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


# Fields written by the recovery flow. Cleared together on a successful reset.
RECOVERY_FIELDS = (
    "reset_token_hash",
    "reset_token_expiry",
    "verification_code_hash",
    "verification_code_expiry",
)


class UserDoc(MongoBaseModel):
    """
    Document model for the `users` collection.

    ``password_hash`` holds an argon2 encoded string. ``reset_token_hash``
    and ``verification_code_hash`` hold SHA-256 digests, never the secrets.
    """

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: UserRole = UserRole.USER
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    reset_token_hash: Optional[str] = None
    reset_token_expiry: Optional[datetime] = None
    verification_code_hash: Optional[str] = None
    verification_code_expiry: Optional[datetime] = None

    @field_validator(
        "created_at",
        "updated_at",
        "reset_token_expiry",
        "verification_code_expiry",
    )
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)
