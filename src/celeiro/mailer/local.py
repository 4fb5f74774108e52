"""Mailer that writes messages to JSON files for local development."""

import json
from datetime import datetime, UTC
from pathlib import Path
from typing import Any

from celeiro.logger import get_logger
from celeiro.mailer.base import EmailMessage, EmailTemplateMessage, Mailer

logger = get_logger(__name__)


class LocalMailer(Mailer):
    """Writes one JSON record per message into an output directory."""

    def __init__(self, output_dir: str, sender: str):
        """Initialize local mailer.

        Args:
            output_dir: Directory for the JSON records, created if missing
            sender: From address recorded with each message
        """
        self.output_dir = Path(output_dir)
        self.sender = sender
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def send_email(self, message: EmailTemplateMessage) -> None:
        logger.info(
            "local mailer",
            sender=self.sender,
            to=", ".join(message.to),
            subject=message.subject,
            template=message.template,
        )
        self._save(
            message.to,
            {
                "to": list(message.to),
                "subject": message.subject,
                "template": message.template,
                "data": message.data,
            },
        )

    def send_plain_email(self, message: EmailMessage) -> None:
        logger.info("local mailer", sender=self.sender, to=", ".join(message.to), subject=message.subject)
        self._save(
            message.to,
            {
                "to": list(message.to),
                "subject": message.subject,
                "body": message.body,
                "is_html": message.is_html,
            },
        )

    def _save(self, to: tuple[str, ...], payload: dict[str, Any]) -> Path:
        timestamp = datetime.now(UTC)
        recipient = "unknown"
        if to:
            recipient = to[0].replace("@", "_at_").replace(".", "_")
        path = self.output_dir / f"{timestamp.strftime('%Y%m%d_%H%M%S')}_{recipient}.json"
        record = {"timestamp": timestamp.isoformat(), "message": payload, "status": "sent"}
        path.write_text(json.dumps(record, indent=2, default=str), encoding="utf-8")
        logger.info("email saved", path=str(path))
        return path

    def sent_emails(self) -> list[dict[str, Any]]:
        """Records written so far, oldest first."""
        records = []
        for path in sorted(self.output_dir.glob("*.json")):
            try:
                records.append(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, json.JSONDecodeError) as e:
                logger.error("failed to read email record", path=str(path), error=str(e))
        return records
