"""DeliveryChannel protocol - how recovery secrets reach the account holder.

Each method returns extra fields to merge into the API response. A channel
that delivers out of band (email, SMS) returns an empty dict.
"""

from typing import Protocol

from schemas.models.user import UserDoc


class DeliveryChannel(Protocol):
    async def deliver_reset_token(self, user: UserDoc, token: str) -> dict: ...

    async def deliver_verification_code(self, user: UserDoc, code: str) -> dict: ...
