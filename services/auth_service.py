"""
Account operations: registration, password login and session lookup.

Every argon2 call runs in a worker thread; hashing is CPU-bound.
"""

from __future__ import annotations

import asyncio
import secrets
from datetime import datetime
from typing import Callable, Optional

from errors import InvalidCredentialsError, NotFoundError, UserAlreadyExistsError
from repositories.protocol import UserRepository
from schemas.models.user import UserDoc, UserRole
from services.session_service import SessionIssuer
from shared.crypto import PasswordHashing
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        sessions: SessionIssuer,
        passwords: PasswordHashing,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._passwords = passwords
        self._clock = clock
        # unknown-email logins verify against this hash too
        self._dummy_hash = passwords.hash(secrets.token_hex(16))

    async def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Optional[UserRole] = None,
        phone: Optional[str] = None,
    ) -> tuple[UserDoc, str]:
        """Create a user and issue its first session token.

        Raises:
            UserAlreadyExistsError: email already registered.
        """
        if await self._users.find_by_email(email) is not None:
            log.info("registration_rejected", reason="duplicate_email")
            raise UserAlreadyExistsError("User already exists", field="email")

        password_hash = await asyncio.to_thread(self._passwords.hash, password)
        now = self._clock()
        user = await self._users.create(
            UserDoc(
                email=email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                role=role or UserRole.USER,
                phone=phone,
                created_at=now,
                updated_at=now,
            )
        )
        log.info("user_registered", user_id=str(user.id), role=user.role)
        return user, self._sessions.issue(user)

    async def login(self, *, email: str, password: str) -> tuple[UserDoc, str]:
        """Check credentials and issue a session token.

        Unknown email and wrong password raise the same error.
        """
        user = await self._users.find_by_email(email)
        if user is None:
            await asyncio.to_thread(self._passwords.verify, password, self._dummy_hash)
            log.warning("login_failed", reason="invalid_credentials", email_exists=False)
            raise InvalidCredentialsError("Invalid credentials")

        valid = await asyncio.to_thread(
            self._passwords.verify, password, user.password_hash
        )
        if not valid:
            log.warning("login_failed", reason="invalid_password", user_id=str(user.id))
            raise InvalidCredentialsError("Invalid credentials")

        log.info("login_success", user_id=str(user.id), auth_method="password")
        return user, self._sessions.issue(user)

    async def current_user(self, token: str) -> UserDoc:
        """Resolve a session token to the stored user record.

        Raises:
            AuthenticationError: token invalid or expired.
            NotFoundError: token valid but the user no longer exists.
        """
        claims = self._sessions.verify(token)
        user = await self._users.find_by_id(str(claims.get("id") or claims.get("sub")))
        if user is None:
            raise NotFoundError("User not found")
        return user
