from __future__ import annotations

import logging
import smtplib
from typing import Optional

from . import mailer
from .errors import NotificationError

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Deliver alert emails; a missing or broken SMTP setup never fails a run."""

    def __init__(
        self,
        smtp_user: str = "",
        smtp_pass: str = "",
        to_addr: str = "",
        *,
        smtp_host: str = "smtp.gmail.com",
        port: int = 465,
        use_tls: bool = False,
    ) -> None:
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.to_addr = to_addr or smtp_user
        self.smtp_host = smtp_host
        self.port = port
        self.use_tls = use_tls

    @classmethod
    def from_settings(cls, settings) -> "EmailNotifier":
        return cls(
            settings.email_user,
            settings.email_password,
            settings.recipient_email,
            smtp_host=settings.smtp_host,
            port=settings.smtp_port,
            use_tls=settings.smtp_starttls,
        )

    @property
    def configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_pass)

    def _send(self, subject: str, body: str, html: Optional[str]) -> None:
        try:
            mailer.send_email(
                subject,
                body,
                self.smtp_host,
                self.smtp_user,
                self.smtp_pass,
                self.to_addr,
                html_body=html,
                port=self.port,
                use_tls=self.use_tls,
            )
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"sending {subject!r} failed: {exc}") from exc

    def notify(self, subject: str, body: str, html: Optional[str] = None) -> bool:
        """Send one email; return ``True`` if it was handed to the SMTP server."""
        if not self.configured:
            logger.info("Email not configured, skipping %r", subject)
            return False
        try:
            self._send(subject, body, html)
        except NotificationError as exc:
            logger.error("%s", exc)
            return False
        logger.info("Email sent: %s", subject)
        return True


__all__ = ["EmailNotifier"]
