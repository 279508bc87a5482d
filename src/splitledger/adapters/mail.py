"""Notification sinks delivering plain-text mail."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.domain.ports.notifications import NotificationSink

if TYPE_CHECKING:
    from collections.abc import Callable

    from splitledger.config.mail import MailConfig

log = getLogger(__name__)


class SmtpNotificationSink:
    def __init__(
        self,
        config: MailConfig,
        *,
        smtp_factory: Callable[[str, int], smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self.config = config
        self._smtp_factory = smtp_factory

    def send(self, to_address: str, subject: str, body: str) -> bool:
        message = EmailMessage()
        message["From"] = self.config.from_address
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content(body)
        try:
            with self._smtp_factory(self.config.host, self.config.port) as smtp:
                if self.config.use_starttls:
                    smtp.starttls()
                if self.config.password is not None:
                    smtp.login(self.config.user, self.config.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            log.error("Failed to send mail to %s: %s", to_address, exc)
            return False
        return True


class LoggingNotificationSink:
    """Stands in for mail delivery when no SMTP account is configured."""

    def send(self, to_address: str, subject: str, body: str) -> bool:
        log.info("Mail delivery not configured; simulated message to %s", to_address)
        log.info("Subject: %s\n%s", subject, body)
        return True


def build_notification_sink(config: MailConfig | None) -> NotificationSink:
    if config is None:
        return LoggingNotificationSink()
    return SmtpNotificationSink(config)
