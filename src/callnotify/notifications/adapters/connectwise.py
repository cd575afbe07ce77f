"""
ConnectWise Manage service-ticket adapter.
"""

from __future__ import annotations

from base64 import b64encode
from typing import Any

import httpx

from callnotify.notifications.interface import TicketClient, TicketResult
from callnotify.shared.exceptions import TicketCreationError
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)


class ConnectWiseTicketClient(TicketClient):
    """Creates service tickets through the ConnectWise Manage REST API."""

    def __init__(
        self,
        base_url: str,
        company_id: str,
        public_key: str,
        private_key: str,
        client_id: str = "",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._company_id = company_id
        self._public_key = public_key
        self._private_key = private_key
        self._client_id = client_id
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

    def _headers(self) -> dict[str, str]:
        credentials = f"{self._company_id}+{self._public_key}:{self._private_key}"
        headers = {
            "Authorization": "Basic " + b64encode(credentials.encode("utf-8")).decode("ascii"),
            "Accept": "application/json",
        }
        if self._client_id:
            headers["clientId"] = self._client_id
        return headers

    async def create_ticket(self, fields: dict[str, Any]) -> TicketResult:
        try:
            response = await self._get_client().post(
                f"{self._base_url}/service/tickets",
                json=fields,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise TicketCreationError(f"Ticket request failed: {e!s}", error_code="HTTP_ERROR") from e

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {"body": response.text[:500]}
            if not isinstance(error_data, dict):
                error_data = {"body": error_data}
            logger.error(
                "Ticket creation rejected",
                extra={"status_code": response.status_code, "error": error_data},
            )
            raise TicketCreationError(
                error_data.get("message", f"Ticket creation failed: HTTP {response.status_code}"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()
        ticket_id = data.get("id")
        if ticket_id is None:
            raise TicketCreationError("Ticket response missing id", error_code="MISSING_TICKET_ID", provider_response=data)

        logger.info("Ticket created", extra={"ticket_id": ticket_id})
        return TicketResult(ticket_id=str(ticket_id), raw_response=data)
