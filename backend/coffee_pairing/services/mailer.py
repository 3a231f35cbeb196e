"""
Outbound email transports.
"""
import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional, Protocol

from coffee_pairing.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send_email(self, to: str, subject: str, body: str) -> None:
        ...


class ConsoleMailer:
    """Writes messages to the log instead of sending them. Used in development."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send_email(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))
        logger.info(f"Email to {to}: {subject}")


class SmtpMailer:
    """Sends mail through an SMTP relay; the blocking client runs in a worker thread."""

    def __init__(self, config: Settings):
        self.config = config

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.EMAIL_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=30) as smtp:
            if self.config.SMTP_USE_TLS:
                smtp.starttls()
            if self.config.SMTP_USERNAME:
                smtp.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD)
            smtp.send_message(message)

    async def send_email(self, to: str, subject: str, body: str) -> None:
        await asyncio.to_thread(self._send, self._build_message(to, subject, body))
        logger.info(f"Sent email to {to}: {subject}")


def build_mailer(config: Optional[Settings] = None) -> Mailer:
    config = config or get_settings()
    if config.EMAIL_BACKEND == "smtp":
        return SmtpMailer(config)
    return ConsoleMailer()
