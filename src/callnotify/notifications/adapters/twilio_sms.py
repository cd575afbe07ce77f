"""
Twilio SMS adapter (Messages REST API over httpx).
"""

from __future__ import annotations

import httpx

from callnotify.notifications.interface import ChannelResult, SmsSender
from callnotify.shared.exceptions import ChannelError
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)


class TwilioSmsSender(SmsSender):
    """Sends SMS through the Twilio REST API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
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

    def _get_api_url(self, endpoint: str) -> str:
        return f"https://api.twilio.com/2010-04-01/Accounts/{self._account_sid}{endpoint}"

    async def send_text(self, to: str, from_: str, body: str) -> ChannelResult:
        try:
            response = await self._get_client().post(
                self._get_api_url("/Messages.json"),
                data={"To": to, "From": from_, "Body": body},
                auth=(self._account_sid, self._auth_token),
            )
        except httpx.HTTPError as e:
            raise ChannelError(f"HTTP error: {e!s}", error_code="HTTP_ERROR") from e

        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {"body": response.text[:500]}
            if not isinstance(error_data, dict):
                error_data = {"body": error_data}
            logger.error(
                "Twilio SMS send failed",
                extra={"status_code": response.status_code, "error": error_data},
            )
            raise ChannelError(
                error_data.get("message", "SMS send failed"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()
        logger.info("SMS sent via Twilio", extra={"message_sid": data.get("sid"), "status": data.get("status")})
        return ChannelResult(provider_message_id=data.get("sid"), raw_response=data)
