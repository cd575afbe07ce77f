"""
Notification channel interfaces.

Adapters raise ChannelError (TicketCreationError for tickets) on failure and
return a result object on success. They own their timeouts.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Channel(str, Enum):
    """Notification delivery mechanisms."""

    EMAIL = "email"
    CHAT = "chat"
    SMS = "sms"
    TICKETING = "ticketing"


@dataclass(frozen=True)
class ChannelResult:
    """Successful delivery on one channel."""

    provider_message_id: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TicketResult:
    """Ticket created by the tracker."""

    ticket_id: str
    raw_response: dict[str, Any] = field(default_factory=dict)


class EmailSender(ABC):
    """Sends an email with both HTML and plain-text bodies."""

    @abstractmethod
    async def send(
        self,
        recipients: Sequence[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> ChannelResult:
        ...

    async def aclose(self) -> None:
        """Release any held connections."""


class ChatPoster(ABC):
    """Posts a structured card to a chat channel."""

    @abstractmethod
    async def post_card(self, card: dict[str, Any]) -> ChannelResult:
        ...

    async def aclose(self) -> None:
        """Release any held connections."""


class SmsSender(ABC):
    """Sends a text message."""

    @abstractmethod
    async def send_text(self, to: str, from_: str, body: str) -> ChannelResult:
        ...

    async def aclose(self) -> None:
        """Release any held connections."""


class TicketClient(ABC):
    """Creates tickets in the ticket tracker."""

    @abstractmethod
    async def create_ticket(self, fields: dict[str, Any]) -> TicketResult:
        ...

    async def aclose(self) -> None:
        """Release any held connections."""


@dataclass(frozen=True)
class NotificationChannels:
    """The adapters a dispatcher may call. None means not wired."""

    email: EmailSender | None = None
    chat: ChatPoster | None = None
    sms: SmsSender | None = None
    ticketing: TicketClient | None = None

    async def aclose(self) -> None:
        for adapter in (self.email, self.chat, self.sms, self.ticketing):
            if adapter is not None:
                await adapter.aclose()
