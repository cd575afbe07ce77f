"""
SMTP email adapter.
"""

from __future__ import annotations

import smtplib
import ssl
from collections.abc import Sequence
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid

import anyio

from callnotify.notifications.interface import ChannelResult, EmailSender
from callnotify.shared.exceptions import ChannelError
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)


class SMTPEmailSender(EmailSender):
    """SMTP sender with optional STARTTLS and login.

    smtplib is blocking, so each send runs in a worker thread.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        from_email: str = "",
        from_name: str = "",
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._from = formataddr((from_name, from_email)) if from_name else from_email
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout_seconds

    def build_message(self, recipients: Sequence[str], subject: str, html_body: str, text_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._from
        msg["To"] = ", ".join(recipients)
        msg["Message-ID"] = make_msgid(domain=self._host or None)

        # Text part first (fallback), HTML last (preferred)
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    async def send(
        self,
        recipients: Sequence[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> ChannelResult:
        if not recipients:
            raise ChannelError("No email recipients configured", error_code="NO_RECIPIENTS")

        msg = self.build_message(recipients, subject, html_body, text_body)
        await anyio.to_thread.run_sync(self._send_sync, msg, list(recipients))

        logger.info("Email sent via SMTP", extra={"recipients": len(recipients), "message_id": msg["Message-ID"]})
        return ChannelResult(provider_message_id=msg["Message-ID"])

    def _send_sync(self, msg: MIMEMultipart, recipients: list[str]) -> None:
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(msg, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as e:
            raise ChannelError(f"SMTP error: {e!s}", error_code="SMTP_ERROR") from e
