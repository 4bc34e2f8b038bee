"""Non-production delivery: secrets are echoed in the API response.

Stands in for the email/SMS sender so the recovery flow can be driven end to
end in development and tests.
"""

from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)


class ResponseDeliveryChannel:
    async def deliver_reset_token(self, user: UserDoc, token: str) -> dict:
        log.debug("reset_token_attached_to_response", user_id=str(user.id))
        return {"resetToken": token}

    async def deliver_verification_code(self, user: UserDoc, code: str) -> dict:
        log.debug("verification_code_attached_to_response", user_id=str(user.id))
        return {"verificationCode": code}
