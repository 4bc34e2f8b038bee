"""
Session assertions - signed, time-bounded JWTs carrying a user snapshot.

Sessions are stateless: logout only clears the client cookie, and a token
stays valid until ``exp``. Signing is RS256 when a key pair is configured,
HS256 with JWT_SECRET otherwise.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import jwt

from config import JWTSettings
from errors import AuthenticationError
from schemas.models.user import UserDoc
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)

# Claims copied from the user record. Never includes credential material.
IDENTITY_CLAIMS = ("id", "email", "role", "createdAt", "firstName", "lastName")


class SessionIssuer:
    def __init__(
        self,
        settings: JWTSettings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._settings = settings
        self._clock = clock
        if settings.use_rs256:
            # Support keys provided via env with literal \n sequences
            self._signing_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._verify_key: Any = settings.jwt_public_key.replace("\\n", "\n")
            self._algorithm = "RS256"
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._signing_key = self._verify_key = settings.jwt_secret
            self._algorithm = "HS256"

    @property
    def ttl_seconds(self) -> int:
        return self._settings.session_ttl_seconds

    def issue(self, user: UserDoc) -> str:
        """Sign a session assertion for *user*."""
        now = self._clock()
        created_at: Optional[datetime] = user.created_at
        claims = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": str(user.id),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.ttl_seconds)).timestamp()),
            "id": str(user.id),
            "email": user.email,
            "role": user.role,
            "createdAt": created_at.isoformat() if created_at else None,
            "firstName": user.first_name,
            "lastName": user.last_name,
        }
        return jwt.encode(claims, self._signing_key, algorithm=self._algorithm)

    def verify(self, token: str) -> dict:
        """Check signature, issuer, audience and expiry; return the claims.

        Raises:
            AuthenticationError: for any invalid, tampered or expired token.
        """
        try:
            return jwt.decode(
                token,
                self._verify_key,
                algorithms=[self._algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
            )
        except jwt.ExpiredSignatureError as e:
            log.info("session_rejected", reason="expired")
            raise AuthenticationError("Session has expired") from e
        except jwt.InvalidTokenError as e:
            log.info("session_rejected", reason="invalid", error_type=type(e).__name__)
            raise AuthenticationError("Invalid session") from e
