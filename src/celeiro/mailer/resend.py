"""Resend HTTP API mailer."""

import requests

from celeiro.domain.errors import UpstreamError
from celeiro.logger import get_logger
from celeiro.mailer.base import EmailMessage, EmailTemplateMessage, Mailer, build_email_from_template

logger = get_logger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class ResendMailer(Mailer):
    def __init__(self, api_key: str, sender: str, timeout: int = 30):
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    def send_email(self, message: EmailTemplateMessage) -> None:
        self.send_plain_email(build_email_from_template(message))

    def send_plain_email(self, message: EmailMessage) -> None:
        payload = {"from": self.sender, "to": list(message.to), "subject": message.subject}
        payload["html" if message.is_html else "text"] = message.body
        try:
            resp = requests.post(
                RESEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(
                "failed to send email via resend", error=str(e), to=list(message.to), subject=message.subject
            )
            raise UpstreamError(f"resend error: {e}") from e

        logger.info(
            "email sent via resend",
            email_id=resp.json().get("id"),
            to=list(message.to),
            subject=message.subject,
        )
