"""
In-memory channel adapters for local runs and tests.

They record every call and can be told to fail.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from callnotify.notifications.interface import (
    ChannelResult,
    ChatPoster,
    EmailSender,
    SmsSender,
    TicketClient,
    TicketResult,
)


@dataclass
class MockEmailSender(EmailSender):
    fail_with: Exception | None = None
    sent: list[dict[str, Any]] = field(default_factory=list)

    async def send(self, recipients: Sequence[str], subject: str, html_body: str, text_body: str) -> ChannelResult:
        self.sent.append(
            {"recipients": list(recipients), "subject": subject, "html_body": html_body, "text_body": text_body}
        )
        if self.fail_with is not None:
            raise self.fail_with
        return ChannelResult(provider_message_id=f"MOCK_EMAIL_{len(self.sent):06d}")


@dataclass
class MockChatPoster(ChatPoster):
    fail_with: Exception | None = None
    cards: list[dict[str, Any]] = field(default_factory=list)

    async def post_card(self, card: dict[str, Any]) -> ChannelResult:
        self.cards.append(card)
        if self.fail_with is not None:
            raise self.fail_with
        return ChannelResult()


@dataclass
class MockSmsSender(SmsSender):
    fail_with: Exception | None = None
    messages: list[dict[str, str]] = field(default_factory=list)

    async def send_text(self, to: str, from_: str, body: str) -> ChannelResult:
        self.messages.append({"to": to, "from": from_, "body": body})
        if self.fail_with is not None:
            raise self.fail_with
        return ChannelResult(provider_message_id=f"MOCK_SMS_{len(self.messages):06d}")


@dataclass
class MockTicketClient(TicketClient):
    fail_with: Exception | None = None
    tickets: list[dict[str, Any]] = field(default_factory=list)

    async def create_ticket(self, fields: dict[str, Any]) -> TicketResult:
        self.tickets.append(fields)
        if self.fail_with is not None:
            raise self.fail_with
        return TicketResult(ticket_id=str(100000 + len(self.tickets)))
