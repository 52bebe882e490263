from typing import Optional

import httpx

from app.core.config import settings
from app.core.logging import mail_logger
from app.core.monitoring import record_email_sent
from app.services.exceptions import ConfigurationError, UpstreamServiceError


class FeedbackMailer:
    """Sends user feedback as a plain-text email through the Resend API"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = settings.get_feedback_mail_config()
        self._transport = transport

    async def send(self, message: str) -> None:
        api_key = self.config["api_key"]
        if not api_key:
            raise ConfigurationError("RESEND_API_KEY is not configured")

        payload = {
            "from": self.config["from_address"],
            "to": [self.config["to_address"]],
            "subject": self.config["subject"],
            "text": message,
        }
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(
                    self.config["api_url"],
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                    timeout=self.config["timeout"],
                )
                resp.raise_for_status()
        except httpx.HTTPError as e:
            record_email_sent(False)
            mail_logger.error("Failed to send feedback email", error=str(e))
            raise UpstreamServiceError("Failed to send feedback") from e

        record_email_sent(True)
        mail_logger.info("Feedback email sent", length=len(message))


def get_feedback_mailer() -> FeedbackMailer:
    return FeedbackMailer()
