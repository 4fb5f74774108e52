"""In-process mailer that records messages."""

from typing import Optional

from celeiro.mailer.base import EmailMessage, EmailTemplateMessage, Mailer, build_email_from_template


class MockMailer(Mailer):
    """Keeps every message in memory. Set ``error`` to make sends fail."""

    def __init__(self):
        self.sent: list[EmailTemplateMessage] = []
        self.sent_plain: list[EmailMessage] = []
        self.error: Optional[Exception] = None

    def send_email(self, message: EmailTemplateMessage) -> None:
        if self.error is not None:
            raise self.error
        # Rendering catches missing template variables
        build_email_from_template(message)
        self.sent.append(message)

    def send_plain_email(self, message: EmailMessage) -> None:
        if self.error is not None:
            raise self.error
        self.sent_plain.append(message)

    def last_to(self, recipient: str) -> Optional[EmailTemplateMessage]:
        """Most recent template message addressed to recipient."""
        for message in reversed(self.sent):
            if recipient in message.to:
                return message
        return None
