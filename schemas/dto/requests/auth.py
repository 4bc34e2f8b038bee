"""
Request DTOs for authentication endpoints.

RegisterRequest         - POST /api/auth/register
LoginRequest            - POST /api/auth/login
ForgotPasswordRequest   - POST /api/auth/forgot-password
VerifyIdentityRequest   - POST /api/auth/verify-identity
ResetPasswordRequest    - POST /api/auth/reset-password

Wire names are camelCase (``firstName``); snake_case names are accepted too.
Every required field is a non-empty JSON string: a missing key, ``""``,
``null`` or a number all fail validation and surface as ``invalid_input``.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from schemas.models.user import UserRole


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: StrictStr = Field(min_length=1)
    password: StrictStr = Field(min_length=1)


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    model_config = ConfigDict(populate_by_name=True)

    email: StrictStr = Field(min_length=1)
    password: StrictStr = Field(min_length=1)
    first_name: StrictStr = Field(alias="firstName", min_length=1)
    last_name: StrictStr = Field(alias="lastName", min_length=1)
    role: Optional[UserRole] = None
    phone: Optional[StrictStr] = None

    @field_validator("role", mode="before")
    @classmethod
    def _blank_role_is_none(cls, v: Any) -> Any:
        return None if v == "" else v

    @field_validator("phone")
    @classmethod
    def _blank_phone_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /api/auth/forgot-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: StrictStr = Field(min_length=1)


class VerifyIdentityRequest(BaseModel):
    """Request body for POST /api/auth/verify-identity.

    ``token`` is the raw reset token from the recovery link.
    """

    model_config = ConfigDict(populate_by_name=True)

    token: StrictStr = Field(min_length=1)
    first_name: StrictStr = Field(alias="firstName", min_length=1)
    last_name: StrictStr = Field(alias="lastName", min_length=1)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/auth/reset-password.

    Length of ``new_password`` is checked by the service, not here, so a short
    password is reported as ``weak_password`` rather than ``invalid_input``.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: StrictStr = Field(alias="userId", min_length=1)
    verification_code: StrictStr = Field(alias="verificationCode", min_length=1)
    new_password: StrictStr = Field(alias="newPassword", min_length=1)
