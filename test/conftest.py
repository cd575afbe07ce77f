"""
Pytest configuration and shared fixtures.
"""
from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

import pytest

from callnotify.calls.events import CallAnalysisEvent, normalize_payload
from callnotify.config import NotificationConfig
from callnotify.notifications.adapters.mock import (
    MockChatPoster,
    MockEmailSender,
    MockSmsSender,
    MockTicketClient,
)
from callnotify.notifications.dispatcher import NotificationDispatcher
from callnotify.notifications.interface import NotificationChannels
from callnotify.webhooks.processor import WebhookProcessor
from callnotify.webhooks.signature import SignatureVerifier, compute_signature

TEST_SECRET = "test-webhook-secret"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's shell/.env flags out of Settings-based tests."""
    for name in (
        "RETELL_WEBHOOK_SECRET",
        "ENABLE_EMAIL_NOTIFICATIONS",
        "ENABLE_TEAMS_NOTIFICATIONS",
        "ENABLE_SMS_NOTIFICATIONS",
        "ENABLE_TICKET_CREATION",
        "USE_MOCK_CHANNELS",
        "EMAIL_PROVIDER",
        "IRT_EMAIL_ADDRESS",
        "TWILIO_ACCOUNT_SID",
        "TWILIO_AUTH_TOKEN",
        "TWILIO_FROM_NUMBER",
        "ONCALL_PHONE_NUMBER",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def webhook_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def incident_analysis() -> dict[str, Any]:
    return {
        "is_security_incident": True,
        "caller_name": "Jane Doe",
        "company_name": "Acme",
        "caller_phone_number": "5551234567",
        "caller_email_address": "jane@acme.example",
        "incident_location": "Des Moines, IA",
        "current_customer": "true",
        "incident_is_customer_primary_contact": "yes",
        "incident_liability_insurance_status": "yes",
        "cybersecurity_insurance_provider_name": "Coalition",
        "IR_call_description": "Ransomware note on all file servers",
    }


@pytest.fixture
def inquiry_analysis() -> dict[str, Any]:
    return {
        "is_security_incident": False,
        "caller_name": "Bob",
        "caller_email_address": "bob@x.com",
        "non_IR_inquiry_reason": "Wants a quote for a penetration test",
    }


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Build a nested (current shape) webhook payload."""

    def _make(
        analysis: dict[str, Any] | None = None,
        event: str = "call_analyzed",
        call_id: str = "call_abc123",
    ) -> dict[str, Any]:
        call_analysis: dict[str, Any] = {"call_summary": "Caller reported an incident."}
        if analysis is not None:
            call_analysis["custom_analysis_data"] = analysis
        return {
            "event": event,
            "call": {
                "call_id": call_id,
                "agent_id": "agent_1",
                "start_timestamp": 1_714_000_000_000,
                "transcript": "Agent: Hello...",
                "call_analysis": call_analysis,
            },
        }

    return _make


@pytest.fixture
def make_event(make_payload: Callable[..., dict[str, Any]]) -> Callable[..., CallAnalysisEvent]:
    def _make(analysis: dict[str, Any] | None = None, **kwargs: Any) -> CallAnalysisEvent:
        return normalize_payload(make_payload(analysis, **kwargs))

    return _make


@pytest.fixture
def sign() -> Callable[[bytes], str]:
    """Timestamped x-retell-signature for a raw body."""

    def _sign(body: bytes, secret: str = TEST_SECRET, timestamp_ms: int | None = None) -> str:
        ts = str(timestamp_ms if timestamp_ms is not None else int(time.time() * 1000))
        return f"v={ts},d={compute_signature(body, secret, ts)}"

    return _sign


@pytest.fixture
def encode() -> Callable[[dict[str, Any]], bytes]:
    def _encode(payload: dict[str, Any]) -> bytes:
        return json.dumps(payload).encode("utf-8")

    return _encode


@pytest.fixture
def all_enabled_config() -> NotificationConfig:
    return NotificationConfig(
        enable_email=True,
        enable_chat=True,
        enable_sms=True,
        enable_ticketing=True,
        incident_recipients=("irt@example.com",),
        inquiry_recipients=("sales@example.com",),
        failure_recipients=("ops-alerts@example.com",),
        sms_from_number="+15550000000",
        sms_to_number="+15559999999",
    )


@pytest.fixture
def mock_channels() -> NotificationChannels:
    return NotificationChannels(
        email=MockEmailSender(),
        chat=MockChatPoster(),
        sms=MockSmsSender(),
        ticketing=MockTicketClient(),
    )


@pytest.fixture
def dispatcher(mock_channels: NotificationChannels, all_enabled_config: NotificationConfig) -> NotificationDispatcher:
    return NotificationDispatcher(mock_channels, all_enabled_config)


@pytest.fixture
def processor(dispatcher: NotificationDispatcher) -> WebhookProcessor:
    return WebhookProcessor(verifier=SignatureVerifier(TEST_SECRET), dispatcher=dispatcher)
