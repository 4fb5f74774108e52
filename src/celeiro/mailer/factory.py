"""Mailer factory."""

from celeiro.config import Settings
from celeiro.logger import get_logger
from celeiro.mailer.base import Mailer
from celeiro.mailer.local import LocalMailer
from celeiro.mailer.mock import MockMailer
from celeiro.mailer.resend import ResendMailer
from celeiro.mailer.smtp2go import SMTP2GOMailer

logger = get_logger(__name__)


def create_mailer(settings: Settings) -> Mailer:
    """Create the mailer selected by MAILER_TYPE.

    Raises:
        ValueError: If MAILER_TYPE names an unknown transport
    """
    mailer_type = settings.mailer_type
    logger.info("creating mailer", mailer_type=mailer_type)

    if mailer_type == "mock":
        return MockMailer()
    if mailer_type == "local":
        return LocalMailer(settings.LOCAL_MAILER_DIR, settings.EMAIL_FROM)
    if mailer_type == "smtp2go":
        return SMTP2GOMailer(
            api_key=settings.SMTP2GO_API_KEY,
            sender=settings.SMTP2GO_SENDER or settings.EMAIL_FROM,
            base_url=settings.SMTP2GO_BASE_URL,
            timeout=settings.SMTP2GO_TIMEOUT,
        )
    if mailer_type == "resend":
        return ResendMailer(api_key=settings.RESEND_API_KEY, sender=settings.EMAIL_FROM)
    raise ValueError(f"Unknown mailer type: {mailer_type}")
