# app/services/mailer.py
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

from .errors import DeliveryUnavailable

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, to: str, subject: str, text_body: str, markup_body: str) -> None:
        """Send one email. Raises DeliveryUnavailable on any failure."""
        ...


class SmtpNotifier:
    """multipart/alternative email (plain text + HTML) over SMTP."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        sender: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = True,
        timeout: float = 15.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, s) -> "SmtpNotifier":
        return cls(
            host=s.smtp_host,
            port=s.smtp_port,
            sender=s.email_from or s.smtp_user,
            username=s.smtp_user,
            password=s.smtp_password,
            starttls=s.smtp_starttls,
            timeout=s.smtp_timeout,
        )

    def _message(self, to: str, subject: str, text_body: str, markup_body: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        # last part is the preferred one
        message.attach(MIMEText(text_body, "plain", "utf-8"))
        message.attach(MIMEText(markup_body, "html", "utf-8"))
        return message

    def send(self, to: str, subject: str, text_body: str, markup_body: str) -> None:
        if not self.host or not self.sender:
            raise DeliveryUnavailable("SMTP_HOST / EMAIL_FROM not configured")

        # ValueError covers UnicodeEncodeError: non-ASCII addresses on servers without SMTPUTF8
        try:
            message = self._message(to, subject, text_body, markup_body)
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.starttls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to], message.as_string())
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise DeliveryUnavailable(f"smtp send to {to} failed: {e}") from e
        logger.info("mail sent to %s: %s", to, subject)
