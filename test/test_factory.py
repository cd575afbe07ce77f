"""
Tests for channel wiring from settings.
"""

import pytest

from callnotify.config import EmailProviderType, Settings
from callnotify.notifications.adapters.connectwise import ConnectWiseTicketClient
from callnotify.notifications.adapters.mock import MockEmailSender, MockSmsSender
from callnotify.notifications.adapters.sendgrid import SendGridEmailSender
from callnotify.notifications.adapters.smtp import SMTPEmailSender
from callnotify.notifications.adapters.teams import TeamsChatPoster
from callnotify.notifications.adapters.twilio_sms import TwilioSmsSender
from callnotify.notifications.factory import _mask, create_channels, create_dispatcher, create_email_sender
from callnotify.shared.exceptions import ConfigurationError

FULL = dict(
    enable_email_notifications=True,
    enable_teams_notifications=True,
    enable_sms_notifications=True,
    enable_ticket_creation=True,
    email_from_address="hotline@x.com",
    irt_email_address="irt@x.com",
    sendgrid_api_key="SG.key",
    teams_webhook_url="https://teams.example/webhook",
    twilio_account_sid="AC123",
    twilio_auth_token="tok",
    twilio_from_number="+15550000000",
    oncall_phone_number="+15559999999",
    connectwise_base_url="https://cw.example",
    connectwise_company_id="acme",
    connectwise_public_key="pub",
    connectwise_private_key="priv",
)


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


def test_mask() -> None:
    assert _mask("") == ""
    assert _mask("abc") == "***"
    assert _mask("AC1234567890") == "AC1234***"


def test_email_provider_selection() -> None:
    assert isinstance(create_email_sender(_settings(**FULL)), SendGridEmailSender)
    smtp = _settings(**dict(FULL, email_provider=EmailProviderType.SMTP, smtp_host="smtp.x.com"))
    assert isinstance(create_email_sender(smtp), SMTPEmailSender)


def test_real_adapters_for_enabled_channels() -> None:
    channels = create_channels(_settings(**FULL))

    assert isinstance(channels.email, SendGridEmailSender)
    assert isinstance(channels.chat, TeamsChatPoster)
    assert isinstance(channels.sms, TwilioSmsSender)
    assert isinstance(channels.ticketing, ConnectWiseTicketClient)


def test_disabled_channels_stay_unwired() -> None:
    channels = create_channels(_settings(**dict(FULL, enable_teams_notifications=False, enable_ticket_creation=False)))

    assert channels.chat is None
    assert channels.ticketing is None
    assert channels.email is not None


def test_mock_channels() -> None:
    channels = create_channels(
        _settings(use_mock_channels=True, enable_email_notifications=True, enable_sms_notifications=True)
    )

    assert isinstance(channels.email, MockEmailSender)
    assert isinstance(channels.sms, MockSmsSender)
    assert channels.chat is None


def test_create_dispatcher_rejects_missing_settings() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        create_dispatcher(_settings(enable_ticket_creation=True))
    assert "CONNECTWISE_BASE_URL" in exc_info.value.missing
