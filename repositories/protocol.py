"""UserRepository protocol - services depend on this, not the concrete implementation."""

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol

from schemas.models.user import UserDoc


class UserRepository(Protocol):
    async def find_by_email(self, email: str) -> Optional[UserDoc]: ...

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]: ...

    async def find_by_reset_token(
        self, token_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        """User whose reset token digest matches and whose expiry is after *now*."""
        ...

    async def find_by_verification_code(
        self, user_id: str, code_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        """User *user_id* holding this code digest, unexpired at *now*."""
        ...

    async def create(self, user: UserDoc) -> UserDoc:
        """Insert *user*; raises UserAlreadyExistsError on a duplicate email."""
        ...

    async def update_credential_fields(
        self, user_id: str, fields: Mapping[str, Any]
    ) -> bool:
        """Set *fields* on one user in a single atomic write."""
        ...
