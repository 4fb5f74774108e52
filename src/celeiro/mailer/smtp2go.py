"""SMTP2GO HTTP API mailer."""

import requests

from celeiro.domain.errors import UpstreamError
from celeiro.logger import get_logger
from celeiro.mailer.base import EmailMessage, EmailTemplateMessage, Mailer, build_email_from_template

logger = get_logger(__name__)


class SMTP2GOMailer(Mailer):
    """Sends mail through the SMTP2GO ``/email/send`` endpoint."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        base_url: str = "https://api.smtp2go.com/v3",
        timeout: int = 30,
    ):
        self.api_key = api_key
        self.sender = sender
        self.base_url = (base_url or "https://api.smtp2go.com/v3").rstrip("/")
        self.timeout = timeout or 30

    def send_email(self, message: EmailTemplateMessage) -> None:
        self.send_plain_email(build_email_from_template(message))

    def send_plain_email(self, message: EmailMessage) -> None:
        payload = {"sender": self.sender, "to": list(message.to), "subject": message.subject}
        if message.is_html:
            payload["html_body"] = message.body
        else:
            payload["text_body"] = message.body

        url = f"{self.base_url}/email/send"
        logger.info("smtp2go request", url=url)
        try:
            resp = requests.post(
                url,
                json=payload,
                headers={"X-Smtp2go-Api-Key": self.api_key, "Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("network error while sending email", error=str(e))
            raise UpstreamError(f"smtp2go network error: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            logger.error("failed to parse smtp2go response", status_code=resp.status_code)
            raise UpstreamError(f"smtp2go returned HTTP {resp.status_code}") from e

        errors = body.get("errors") or []
        data = body.get("data") or {}
        if resp.status_code != 200:
            detail = errors[0].get("message") if errors else f"HTTP {resp.status_code}"
            logger.error("failed to send email", status_code=resp.status_code, error=detail)
            raise UpstreamError(f"smtp2go API error: {detail}")
        if errors:
            detail = "; ".join(f"{e.get('message')} ({e.get('code')})" for e in errors)
            logger.error("failed to send email", errors=errors)
            raise UpstreamError(f"smtp2go API errors: {detail}")
        if data.get("failed", 0) > 0:
            detail = "; ".join(
                f"{f.get('email_address')} ({f.get('message')})" for f in data.get("failures") or []
            )
            logger.error("some emails failed to send", failures=data.get("failures"))
            raise UpstreamError(f"failed to send to some recipients: {detail}")

        logger.info(
            "email sent",
            email_id=data.get("email_id"),
            succeeded=data.get("succeeded"),
            to=list(message.to),
            subject=message.subject,
        )
