from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from ..core.exceptions import NotificationUnavailableError
from ..settings.model import EmailConfig
from ..settings.provider import SettingsProvider
from .port import NotificationPort

logger = logging.getLogger(__name__)


class SmtpNotifier(NotificationPort):
    """Send plain-text emails over SMTP.

    The email configuration is re-read on every send so settings changes
    apply without a restart. Every socket operation is bounded by
    ``EmailConfig.timeout_seconds``.
    """

    def __init__(self, settings: SettingsProvider):
        self._settings = settings

    def send(self, to: str, subject: str, body: str) -> None:
        config = self._settings.get_email_config()
        if not config.is_configured:
            raise NotificationUnavailableError("SMTP not configured")
        if not to:
            raise NotificationUnavailableError("Recipient address is empty")

        try:
            message = EmailMessage()
            message["Subject"] = subject
            message["From"] = config.sender
            message["To"] = to
            message.set_content(body)
        except ValueError as ex:
            # header values with CR/LF and similar malformed input
            raise NotificationUnavailableError(f"Cannot build email to {to!r}: {ex}") from ex

        try:
            with self._connect(config) as server:
                server.send_message(message)
        except OSError as ex:
            # smtplib.SMTPException and socket timeouts are both OSErrors
            raise NotificationUnavailableError(f"Failed to send email to {to}: {ex}") from ex

        logger.info("Sent email %r to %s", subject, to)

    def _connect(self, config: EmailConfig) -> smtplib.SMTP:
        if config.secure:
            server: smtplib.SMTP = smtplib.SMTP_SSL(config.host, config.port, timeout=config.timeout_seconds)
        else:
            server = smtplib.SMTP(config.host, config.port, timeout=config.timeout_seconds)
        try:
            if not config.secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if config.user:
                server.login(config.user, config.password)
        except BaseException:
            server.close()
            raise
        return server
