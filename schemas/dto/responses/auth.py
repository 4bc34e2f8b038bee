"""
Response DTOs for authentication endpoints.

UserSummary             - user shape returned by register
UserProfileResponse     - user shape returned by login and current-user
RegisterResponse        - POST /api/auth/register  (201)
LoginResponse           - POST /api/auth/login  (200)
ForgotPasswordResponse  - POST /api/auth/forgot-password  (200)
VerifyIdentityResponse  - POST /api/auth/verify-identity  (200)
CurrentUserResponse     - GET /api/auth/user  (200)

Optional secret fields (``resetToken``, ``verificationCode``) are absent from
the JSON when None (routes use response_model_exclude_none=True).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.user import UserDoc, UserRole


class UserSummary(BaseModel):
    """Public identity fields of a user. No credential or recovery data."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    role: UserRole

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserSummary":
        return cls(
            id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
        )


class UserProfileResponse(UserSummary):
    """UserSummary plus the optional profile fields."""

    phone: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserProfileResponse":
        return cls(
            id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            phone=user.phone,
            created_at=user.created_at,
        )


class RegisterResponse(BaseModel):
    """Response body for POST /api/auth/register (201)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    token: str
    user: UserSummary


class LoginResponse(BaseModel):
    """Response body for POST /api/auth/login (200)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    token: str
    user: UserProfileResponse


class ForgotPasswordResponse(BaseModel):
    """Response body for POST /api/auth/forgot-password (200).

    Identical for known and unknown emails, apart from ``resetToken`` which
    only appears outside production for a known email.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str
    reset_token: Optional[str] = Field(default=None, alias="resetToken")


class VerifyIdentityResponse(BaseModel):
    """Response body for POST /api/auth/verify-identity (200)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    verified: bool
    user_id: str = Field(alias="userId")
    verification_code: Optional[str] = Field(default=None, alias="verificationCode")


class CurrentUserResponse(BaseModel):
    """Response body for GET /api/auth/user (200)."""

    model_config = ConfigDict(populate_by_name=True)

    user: UserProfileResponse
