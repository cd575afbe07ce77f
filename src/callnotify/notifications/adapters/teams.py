"""
Microsoft Teams incoming-webhook adapter.
"""

from __future__ import annotations

from typing import Any

import httpx

from callnotify.notifications.interface import ChannelResult, ChatPoster
from callnotify.shared.exceptions import ChannelError
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)


class TeamsChatPoster(ChatPoster):
    """Posts Adaptive Card messages to a Teams incoming webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._webhook_url = webhook_url
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

    async def post_card(self, card: dict[str, Any]) -> ChannelResult:
        try:
            response = await self._get_client().post(self._webhook_url, json=card)
        except httpx.HTTPError as e:
            raise ChannelError(f"Teams webhook request failed: {e!s}", error_code="HTTP_ERROR") from e

        if not response.is_success:
            raise ChannelError(
                f"Teams webhook failed: {response.status_code} {response.reason_phrase}",
                error_code=str(response.status_code),
                provider_response={"body": response.text[:500]},
            )

        logger.info("Teams card posted", extra={"status_code": response.status_code})
        return ChannelResult()
