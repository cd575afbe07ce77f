"""
SendGrid email adapter (v3 Mail Send API over httpx).
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from callnotify.notifications.interface import ChannelResult, EmailSender
from callnotify.shared.exceptions import ChannelError
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridEmailSender(EmailSender):
    """Sends multipart (text + HTML) email through SendGrid."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str = "",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._from_name = from_name
        self._timeout = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _build_payload(self, recipients: Sequence[str], subject: str, html_body: str, text_body: str) -> dict:
        sender = {"email": self._from_email}
        if self._from_name:
            sender["name"] = self._from_name
        return {
            "personalizations": [{"to": [{"email": r} for r in recipients]}],
            "from": sender,
            "subject": subject,
            # SendGrid requires text/plain before text/html
            "content": [
                {"type": "text/plain", "value": text_body},
                {"type": "text/html", "value": html_body},
            ],
        }

    async def send(
        self,
        recipients: Sequence[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> ChannelResult:
        if not recipients:
            raise ChannelError("No email recipients configured", error_code="NO_RECIPIENTS")

        payload = self._build_payload(recipients, subject, html_body, text_body)
        try:
            response = await self._get_client().post(
                SENDGRID_SEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            raise ChannelError(f"SendGrid request failed: {e!s}", error_code="HTTP_ERROR") from e

        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {"body": response.text[:500]}
            if not isinstance(error_data, dict):
                error_data = {"body": error_data}
            logger.error(
                "SendGrid send failed",
                extra={"status_code": response.status_code, "error": error_data},
            )
            raise ChannelError(
                f"SendGrid rejected email: HTTP {response.status_code}",
                error_code=str(response.status_code),
                provider_response=error_data,
            )

        message_id = response.headers.get("X-Message-Id")
        logger.info("Email sent via SendGrid", extra={"recipients": len(recipients), "message_id": message_id})
        return ChannelResult(provider_message_id=message_id)
