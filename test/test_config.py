"""
Tests for environment-driven configuration.
"""

import pytest

from callnotify.config import (
    EmailProviderType,
    NotificationConfig,
    Settings,
    get_settings,
    split_recipients,
)
from callnotify.shared.exceptions import ConfigurationError


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSplitRecipients:
    @pytest.mark.parametrize("value", [None, "", " , ; "])
    def test_empty(self, value) -> None:
        assert split_recipients(value) == ()

    def test_comma_and_semicolon(self) -> None:
        assert split_recipients("a@x.com, b@x.com;c@x.com ") == ("a@x.com", "b@x.com", "c@x.com")


class TestSettingsDefaults:
    def test_declared_defaults(self) -> None:
        settings = _settings()
        assert settings.enable_email_notifications is False
        assert settings.enable_teams_notifications is False
        assert settings.enable_sms_notifications is False
        assert settings.enable_ticket_creation is False
        assert settings.email_provider == EmailProviderType.SENDGRID
        assert settings.signature_tolerance_seconds == 300
        assert settings.connectwise_board_name == "Incident Response"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLE_SMS_NOTIFICATIONS", "true")
        monkeypatch.setenv("EMAIL_PROVIDER", "smtp")

        settings = get_settings()

        assert settings.enable_sms_notifications is True
        assert settings.email_provider == EmailProviderType.SMTP


class TestMissingChannelSettings:
    def test_nothing_enabled(self) -> None:
        assert _settings().missing_channel_settings() == []

    def test_sendgrid_email(self) -> None:
        settings = _settings(enable_email_notifications=True, email_from_address="hotline@x.com")
        assert settings.missing_channel_settings() == ["IRT_EMAIL_ADDRESS", "SENDGRID_API_KEY"]

    def test_smtp_email(self) -> None:
        settings = _settings(
            enable_email_notifications=True,
            email_provider=EmailProviderType.SMTP,
            email_from_address="hotline@x.com",
            irt_email_address="irt@x.com",
        )
        assert settings.missing_channel_settings() == ["SMTP_HOST"]

    def test_every_channel(self) -> None:
        settings = _settings(
            enable_teams_notifications=True,
            enable_sms_notifications=True,
            enable_ticket_creation=True,
            twilio_account_sid="AC123",
        )
        assert settings.missing_channel_settings() == [
            "TEAMS_WEBHOOK_URL",
            "TWILIO_AUTH_TOKEN",
            "TWILIO_FROM_NUMBER",
            "ONCALL_PHONE_NUMBER",
            "CONNECTWISE_BASE_URL",
            "CONNECTWISE_COMPANY_ID",
            "CONNECTWISE_PUBLIC_KEY",
            "CONNECTWISE_PRIVATE_KEY",
        ]

    def test_mock_channels_need_nothing(self) -> None:
        settings = _settings(use_mock_channels=True, enable_sms_notifications=True)
        assert settings.missing_channel_settings() == []


class TestNotificationConfig:
    def test_missing_settings_raise(self) -> None:
        settings = _settings(enable_teams_notifications=True)
        with pytest.raises(ConfigurationError) as exc_info:
            settings.notification_config()
        assert exc_info.value.missing == ["TEAMS_WEBHOOK_URL"]
        assert "TEAMS_WEBHOOK_URL" in str(exc_info.value)

    def test_recipient_fallbacks(self) -> None:
        config = _settings(irt_email_address="irt@x.com, lead@x.com").notification_config()
        assert config.incident_recipients == ("irt@x.com", "lead@x.com")
        assert config.inquiry_recipients == config.incident_recipients
        assert config.failure_recipients == config.incident_recipients

    def test_full_mapping(self) -> None:
        config = _settings(
            enable_email_notifications=True,
            enable_sms_notifications=True,
            email_from_address="hotline@x.com",
            irt_email_address="irt@x.com",
            inquiry_email_address="sales@x.com",
            ticket_failure_email_address="ops@x.com",
            sendgrid_api_key="SG.key",
            twilio_account_sid="AC123",
            twilio_auth_token="tok",
            twilio_from_number="+15550000000",
            oncall_phone_number="+15559999999",
            connectwise_board_name="IR Board",
        ).notification_config()

        assert config == NotificationConfig(
            enable_email=True,
            enable_sms=True,
            incident_recipients=("irt@x.com",),
            inquiry_recipients=("sales@x.com",),
            failure_recipients=("ops@x.com",),
            sms_from_number="+15550000000",
            sms_to_number="+15559999999",
            ticket_board="IR Board",
        )
