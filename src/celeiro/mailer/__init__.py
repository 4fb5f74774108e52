"""Outbound email."""

from celeiro.mailer.base import EmailMessage, EmailTemplateMessage, Mailer
from celeiro.mailer.factory import create_mailer
from celeiro.mailer.mock import MockMailer
from celeiro.mailer.rendering import AUTH_CODE, ORGANIZATION_INVITE

__all__ = [
    "AUTH_CODE",
    "ORGANIZATION_INVITE",
    "EmailMessage",
    "EmailTemplateMessage",
    "Mailer",
    "MockMailer",
    "create_mailer",
]
