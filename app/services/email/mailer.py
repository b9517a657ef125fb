# app/services/email/mailer.py
from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from app.core.config import settings
from app.core.errors import EmailSendFailed

log = logging.getLogger("email")


class SmtpMailer:
    """HTML mail over an SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        sender_name: str = "Aura",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender_name = sender_name
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def _message(self, recipient: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.sender_name, self.user or ""))
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _send_sync(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.user, self.password)
            server.send_message(msg)

    async def send(self, recipient: str, subject: str, html_body: str) -> None:
        if not self.configured:
            log.warning("SMTP credentials not set. Email would have been sent to: %s", recipient)
            raise EmailSendFailed("Email is not configured on the server (EMAIL_SERVER_USER / EMAIL_SERVER_PASSWORD).")
        msg = self._message(recipient, subject, html_body)
        try:
            await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error("sending email to %s failed: %s", recipient, e)
            raise EmailSendFailed(f"Failed to send email: {e}")
        log.info("report email sent to %s", recipient)


# Singleton accessor
_mailer: Optional[SmtpMailer] = None
def get_mailer() -> SmtpMailer:
    global _mailer
    if _mailer is None:
        _mailer = SmtpMailer(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.EMAIL_SERVER_USER,
            password=settings.EMAIL_SERVER_PASSWORD,
            sender_name=settings.EMAIL_SENDER_NAME,
        )
    return _mailer
