"""Mailer interface and message types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from celeiro.mailer.rendering import render_template


@dataclass(frozen=True)
class EmailMessage:
    """A fully rendered email."""

    to: tuple[str, ...]
    subject: str
    body: str
    is_html: bool = False


@dataclass(frozen=True)
class EmailTemplateMessage:
    """An email whose body is rendered from a named template."""

    to: tuple[str, ...]
    subject: str
    template: str
    data: dict[str, Any] = field(default_factory=dict)


def build_email_from_template(message: EmailTemplateMessage) -> EmailMessage:
    """Render a template message into an HTML EmailMessage."""
    return EmailMessage(
        to=message.to,
        subject=message.subject,
        body=render_template(message.template, message.data),
        is_html=True,
    )


class Mailer(ABC):
    """Abstract outbound mail transport."""

    @abstractmethod
    def send_email(self, message: EmailTemplateMessage) -> None:
        """Render and send a template message."""
        pass

    @abstractmethod
    def send_plain_email(self, message: EmailMessage) -> None:
        """Send an already rendered message."""
        pass
