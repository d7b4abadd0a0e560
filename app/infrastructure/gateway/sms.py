"""
SMS notification sender.

Fire-and-forget: send_message never raises, failures are logged and
returned in SmsResult.
"""
import logging
from dataclasses import dataclass

from app.config import get_settings
from app.domain.errors import GatewayError
from app.infrastructure.gateway.instasend import InstasendClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmsResult:
    success: bool
    error: str | None = None


class SmsSender:
    def __init__(self, client: InstasendClient | None, enabled: bool = True):
        self.client = client
        self.enabled = enabled

    def send_message(self, phone: str, text: str) -> SmsResult:
        if not phone:
            return SmsResult(False, "No phone number")
        if not self.enabled or self.client is None:
            logger.info("SMS disabled, skipping message to ...%s", phone[-4:])
            return SmsResult(False, "SMS disabled")
        try:
            self.client.send_sms(phone, text)
        except GatewayError as e:
            logger.warning("SMS send failed to ...%s: %s", phone[-4:], e)
            return SmsResult(False, str(e))
        return SmsResult(True)


def get_sms_sender() -> SmsSender:
    settings = get_settings()
    return SmsSender(InstasendClient.from_settings(settings), enabled=settings.SMS_ENABLED)
