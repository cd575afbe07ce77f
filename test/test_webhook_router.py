"""
HTTP-level tests for POST /webhooks/retell.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from callnotify.main import create_app
from callnotify.notifications.adapters.mock import MockChatPoster
from callnotify.notifications.dispatcher import NotificationDispatcher
from callnotify.notifications.interface import NotificationChannels
from callnotify.shared.exceptions import ChannelError, ConfigurationError
from callnotify.webhooks import router as router_module
from callnotify.webhooks.processor import WebhookProcessor
from callnotify.webhooks.router import get_webhook_processor
from callnotify.webhooks.signature import SIGNATURE_HEADER, SignatureVerifier

URL = "/webhooks/retell"


def _client(processor: WebhookProcessor) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_webhook_processor] = lambda: processor
    return TestClient(app)


def test_health() -> None:
    client = TestClient(create_app())
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


def test_incident_processed(processor, mock_channels, make_payload, encode, sign, incident_analysis) -> None:
    body = encode(make_payload(incident_analysis))

    resp = _client(processor).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["status"] == "processed"
    assert data["classification"] == "incident"
    assert data["notifications"]["total"] == 4
    assert len(mock_channels.sms.messages) == 1


def test_missing_signature_is_401(processor, mock_channels, make_payload, encode, incident_analysis) -> None:
    body = encode(make_payload(incident_analysis))

    resp = _client(processor).post(URL, content=body)

    assert resp.status_code == 401
    assert resp.json()["success"] is False
    assert resp.json()["error_code"] == "MISSING_SIGNATURE"
    assert mock_channels.email.sent == []


def test_bad_signature_is_401(processor, make_payload, encode, sign) -> None:
    body = encode(make_payload({}))
    resp = _client(processor).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body, secret="wrong")})
    assert resp.status_code == 401


def test_missing_secret_is_500(dispatcher, make_payload, encode, sign) -> None:
    processor = WebhookProcessor(verifier=SignatureVerifier(""), dispatcher=dispatcher)
    body = encode(make_payload({}))

    resp = _client(processor).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

    assert resp.status_code == 500
    assert resp.json()["error_code"] == "MISSING_WEBHOOK_SECRET"


def test_invalid_json_is_400(processor, sign) -> None:
    body = b"{not json"
    resp = _client(processor).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_JSON"


def test_non_analyzed_event_acknowledged(processor, make_payload, encode, sign) -> None:
    body = encode(make_payload({}, event="call_ended"))

    resp = _client(processor).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

    assert resp.status_code == 200
    assert resp.json()["status"] == "ignored"


def test_missing_data_is_200_skipped(processor, mock_channels, make_payload, encode, sign, inquiry_analysis) -> None:
    analysis = dict(inquiry_analysis, caller_name="")
    body = encode(make_payload(analysis))

    resp = _client(processor).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

    assert resp.status_code == 200
    assert resp.json()["status"] == "skipped"
    assert resp.json()["validation"]["missing_fields"] == ["caller name"]
    assert mock_channels.email.sent == []


def test_channel_failure_still_200(all_enabled_config, mock_channels, webhook_secret, make_payload, encode, sign,
                                   incident_analysis) -> None:
    channels = NotificationChannels(
        email=mock_channels.email,
        chat=MockChatPoster(fail_with=ChannelError("Teams webhook failed: 502 Bad Gateway", error_code="502")),
        sms=mock_channels.sms,
        ticketing=mock_channels.ticketing,
    )
    processor = WebhookProcessor(
        verifier=SignatureVerifier(webhook_secret),
        dispatcher=NotificationDispatcher(channels, all_enabled_config),
    )
    body = encode(make_payload(incident_analysis))

    resp = _client(processor).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

    assert resp.status_code == 200
    notifications = resp.json()["notifications"]
    assert (notifications["successful"], notifications["failed"]) == (3, 1)
    assert notifications["failures"][0]["task"] == "post_chat_card"


def test_configuration_error_is_500(make_payload, encode, sign) -> None:
    def _broken() -> WebhookProcessor:
        raise ConfigurationError("Missing required environment variables for enabled features: TEAMS_WEBHOOK_URL",
                                 missing=["TEAMS_WEBHOOK_URL"])

    app = create_app()
    app.dependency_overrides[get_webhook_processor] = _broken
    body = encode(make_payload({}))

    resp = TestClient(app).post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

    assert resp.status_code == 500
    assert resp.json()["error_code"] == "CONFIGURATION_ERROR"
    assert "TEAMS_WEBHOOK_URL" in resp.json()["error"]


class TestSettingsWiredProcessor:
    @pytest.fixture(autouse=True)
    def _fresh_processor(self):
        router_module._build_processor.cache_clear()
        yield
        router_module._build_processor.cache_clear()

    def test_mock_channels_from_environment(self, monkeypatch, webhook_secret, make_payload, encode, sign,
                                            incident_analysis) -> None:
        monkeypatch.setenv("RETELL_WEBHOOK_SECRET", webhook_secret)
        monkeypatch.setenv("USE_MOCK_CHANNELS", "true")
        monkeypatch.setenv("ENABLE_EMAIL_NOTIFICATIONS", "true")
        monkeypatch.setenv("ENABLE_TICKET_CREATION", "true")
        monkeypatch.setenv("IRT_EMAIL_ADDRESS", "irt@example.com")

        client = TestClient(create_app())
        body = encode(make_payload(incident_analysis))
        resp = client.post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

        assert resp.status_code == 200
        results = {r["task"] for r in resp.json()["notifications"]["results"]}
        assert results == {"create_ticket", "send_incident_email"}

    def test_missing_channel_settings_fail_the_request(self, monkeypatch, webhook_secret, make_payload, encode,
                                                       sign) -> None:
        monkeypatch.setenv("RETELL_WEBHOOK_SECRET", webhook_secret)
        monkeypatch.setenv("ENABLE_SMS_NOTIFICATIONS", "true")

        client = TestClient(create_app())
        body = encode(make_payload({}))
        resp = client.post(URL, content=body, headers={SIGNATURE_HEADER: sign(body)})

        assert resp.status_code == 500
        assert "TWILIO_ACCOUNT_SID" in resp.json()["error"]
