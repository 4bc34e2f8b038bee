"""Production delivery placeholder.

No email/SMS provider is wired in; the channel records that a secret was
issued (user id only) and keeps it out of the response.
"""

from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)


class LogDeliveryChannel:
    async def deliver_reset_token(self, user: UserDoc, token: str) -> dict:
        log.info("reset_link_delivery_pending", user_id=str(user.id), channel="none")
        return {}

    async def deliver_verification_code(self, user: UserDoc, code: str) -> dict:
        log.info(
            "verification_code_delivery_pending", user_id=str(user.id), channel="none"
        )
        return {}
