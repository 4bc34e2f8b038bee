"""
Three-step password recovery.

    NONE --request_reset--> TOKEN_ISSUED --verify_identity--> IDENTITY_VERIFIED
         <--------------------- reset_password ---------------------------/

1. ``request_reset``: a reset token (bearer link secret, 1h) is issued for a
   known email. The response is the same whether or not the email exists.
2. ``verify_identity``: the link token plus the account holder's first and
   last name earn a 6-digit verification code (10min).
3. ``reset_password``: user id + code + new password. The password hash is
   written and all recovery fields are cleared in the same update.

Only digests of the token and code are stored. Re-requesting a reset simply
overwrites the previous token, so the most recently issued one is the only
valid one. Expiry is enforced by the lookup predicate.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from config import RecoverySettings
from errors import (
    IdentityVerificationFailedError,
    InvalidOrExpiredCodeError,
    InvalidOrExpiredTokenError,
    WeakPasswordError,
)
from infrastructure.delivery.protocol import DeliveryChannel
from repositories.protocol import UserRepository
from schemas.models.user import RECOVERY_FIELDS
from shared.crypto import PasswordHashing, hash_token
from shared.datetime_utils import utcnow
from shared.generators import generate_reset_token, generate_verification_code
from shared.logging import get_logger
from shared.validators import MIN_PASSWORD_LENGTH, names_match, validate_password_length

log = get_logger(__name__)

RESET_REQUESTED_MESSAGE = "If your email exists in our system, you will receive a reset link"
IDENTITY_VERIFIED_MESSAGE = "Identity verified successfully"
PASSWORD_RESET_MESSAGE = "Password reset successfully"


@dataclass
class ResetRequested:
    message: str = RESET_REQUESTED_MESSAGE
    delivery: dict = field(default_factory=dict)


@dataclass
class IdentityVerified:
    user_id: str
    message: str = IDENTITY_VERIFIED_MESSAGE
    verified: bool = True
    delivery: dict = field(default_factory=dict)


class PasswordResetService:
    def __init__(
        self,
        users: UserRepository,
        passwords: PasswordHashing,
        delivery: DeliveryChannel,
        settings: Optional[RecoverySettings] = None,
        *,
        min_password_length: int = MIN_PASSWORD_LENGTH,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if settings is None:
            settings = RecoverySettings()
        self._users = users
        self._passwords = passwords
        self._delivery = delivery
        self._token_ttl = timedelta(seconds=settings.reset_token_ttl_seconds)
        self._code_ttl = timedelta(seconds=settings.verification_code_ttl_seconds)
        self._min_password_length = min_password_length
        self._clock = clock

    async def request_reset(self, email: str) -> ResetRequested:
        """Issue a reset token if *email* belongs to a user.

        Both outcomes return the same message; only the side effect differs.
        """
        result = ResetRequested()
        user = await self._users.find_by_email(email)
        if user is None:
            log.info("password_reset_requested_nonexistent")
            return result

        token = generate_reset_token()
        await self._users.update_credential_fields(
            str(user.id),
            {
                "reset_token_hash": hash_token(token),
                "reset_token_expiry": self._clock() + self._token_ttl,
            },
        )
        log.info("password_reset_requested", user_id=str(user.id))
        result.delivery = await self._delivery.deliver_reset_token(user, token)
        return result

    async def verify_identity(
        self, token: str, first_name: str, last_name: str
    ) -> IdentityVerified:
        """Exchange a live reset token and matching names for a verification code.

        Raises:
            InvalidOrExpiredTokenError: no user holds this token, or it expired.
            IdentityVerificationFailedError: names do not match; the token is
                left untouched so the user can retry.
        """
        user = await self._users.find_by_reset_token(hash_token(token), self._clock())
        if user is None:
            log.info("identity_verification_rejected", reason="invalid_or_expired_token")
            raise InvalidOrExpiredTokenError("Invalid or expired token")

        if not (
            names_match(user.first_name, first_name)
            and names_match(user.last_name, last_name)
        ):
            log.warning("identity_verification_failed", user_id=str(user.id))
            raise IdentityVerificationFailedError("Identity verification failed")

        code = generate_verification_code()
        await self._users.update_credential_fields(
            str(user.id),
            {
                "verification_code_hash": hash_token(code),
                "verification_code_expiry": self._clock() + self._code_ttl,
            },
        )
        log.info("identity_verified", user_id=str(user.id))
        delivery = await self._delivery.deliver_verification_code(user, code)
        return IdentityVerified(user_id=str(user.id), delivery=delivery)

    async def reset_password(
        self, user_id: str, verification_code: str, new_password: str
    ) -> str:
        """Set a new password and consume every outstanding recovery secret.

        Raises:
            WeakPasswordError: checked before any storage access.
            InvalidOrExpiredCodeError: wrong user, wrong code or expired code.
        """
        if not validate_password_length(new_password, self._min_password_length):
            raise WeakPasswordError(
                f"Password must be at least {self._min_password_length} characters long",
                field="newPassword",
            )

        user = await self._users.find_by_verification_code(
            user_id, hash_token(verification_code), self._clock()
        )
        if user is None:
            log.info("password_reset_rejected", reason="invalid_or_expired_code")
            raise InvalidOrExpiredCodeError("Invalid or expired verification code")

        password_hash = await asyncio.to_thread(self._passwords.hash, new_password)
        fields: dict = {"password_hash": password_hash, "updated_at": self._clock()}
        fields.update({name: None for name in RECOVERY_FIELDS})
        await self._users.update_credential_fields(str(user.id), fields)

        log.info("password_reset_success", user_id=str(user.id))
        return PASSWORD_RESET_MESSAGE
