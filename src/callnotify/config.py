"""
Application configuration with environment-driven settings.

Settings are loaded once at the edge (router/factory). Core logic only ever
sees the frozen NotificationConfig built from them.
"""

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from callnotify.shared.exceptions import ConfigurationError


class EmailProviderType(str, Enum):
    """Supported email providers."""

    SENDGRID = "sendgrid"
    SMTP = "smtp"


def split_recipients(value: str | None) -> tuple[str, ...]:
    """Split a comma/semicolon separated address list into trimmed entries."""
    if not value:
        return ()
    parts = value.replace(";", ",").split(",")
    return tuple(p.strip() for p in parts if p.strip())


@dataclass(frozen=True)
class NotificationConfig:
    """Per-dispatch channel configuration passed explicitly to the dispatcher."""

    enable_email: bool = False
    enable_chat: bool = False
    enable_sms: bool = False
    enable_ticketing: bool = False
    email_provider: EmailProviderType = EmailProviderType.SENDGRID
    incident_recipients: tuple[str, ...] = ()
    inquiry_recipients: tuple[str, ...] = ()
    failure_recipients: tuple[str, ...] = ()
    sms_from_number: str = ""
    sms_to_number: str = ""
    ticket_board: str = "Incident Response"
    ticket_company_identifier: str = "Catchall"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "callnotify"
    debug: bool = False
    log_level: str = "INFO"

    # Inbound webhook authentication
    retell_webhook_secret: str = Field(
        default="",
        description="Shared secret used to verify x-retell-signature",
    )
    signature_tolerance_seconds: int = Field(
        default=300,
        ge=0,
        description="Maximum age of a timestamped signature; 0 disables the check",
    )

    # Feature flags (default to disabled)
    enable_email_notifications: bool = False
    enable_teams_notifications: bool = False
    enable_sms_notifications: bool = False
    enable_ticket_creation: bool = False

    # Email
    email_provider: EmailProviderType = Field(default=EmailProviderType.SENDGRID)
    email_from_address: str = Field(default="", description="Sender address for all emails")
    email_from_name: str = Field(default="Incident Response Hotline")
    irt_email_address: str = Field(
        default="",
        description="Comma-separated incident response team recipients",
    )
    inquiry_email_address: str = Field(
        default="",
        description="Comma-separated inquiry recipients; falls back to irt_email_address",
    )
    ticket_failure_email_address: str = Field(
        default="",
        description="Comma-separated recipients for ticket-creation failure alerts",
    )
    sendgrid_api_key: str = Field(default="")
    smtp_host: str = Field(default="")
    smtp_port: int = Field(default=587)
    smtp_username: str = Field(default="")
    smtp_password: str = Field(default="")
    smtp_use_tls: bool = True

    # Chat
    teams_webhook_url: str = Field(default="")

    # SMS
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")
    twilio_from_number: str = Field(default="")
    oncall_phone_number: str = Field(default="")

    # Ticketing
    connectwise_base_url: str = Field(
        default="",
        description="ConnectWise Manage REST base, e.g. https://na.myconnectwise.net/v4_6_release/apis/3.0",
    )
    connectwise_company_id: str = Field(default="")
    connectwise_public_key: str = Field(default="")
    connectwise_private_key: str = Field(default="")
    connectwise_client_id: str = Field(default="")
    connectwise_board_name: str = Field(default="Incident Response")
    connectwise_company_identifier: str = Field(default="Catchall")

    # Channel calls
    channel_timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    use_mock_channels: bool = Field(
        default=False,
        description="Route every channel to in-memory mock adapters (local runs)",
    )

    def missing_channel_settings(self) -> list[str]:
        """Environment variables required by enabled channels but unset."""
        if self.use_mock_channels:
            return []

        required: list[str] = []

        if self.enable_email_notifications:
            required += ["EMAIL_FROM_ADDRESS", "IRT_EMAIL_ADDRESS"]
            if self.email_provider == EmailProviderType.SENDGRID:
                required.append("SENDGRID_API_KEY")
            else:
                required.append("SMTP_HOST")

        if self.enable_teams_notifications:
            required.append("TEAMS_WEBHOOK_URL")

        if self.enable_sms_notifications:
            required += [
                "TWILIO_ACCOUNT_SID",
                "TWILIO_AUTH_TOKEN",
                "TWILIO_FROM_NUMBER",
                "ONCALL_PHONE_NUMBER",
            ]

        if self.enable_ticket_creation:
            required += [
                "CONNECTWISE_BASE_URL",
                "CONNECTWISE_COMPANY_ID",
                "CONNECTWISE_PUBLIC_KEY",
                "CONNECTWISE_PRIVATE_KEY",
            ]

        return [name for name in required if not getattr(self, name.lower())]

    def notification_config(self) -> NotificationConfig:
        """Build the frozen dispatcher config, failing on missing channel settings."""
        missing = self.missing_channel_settings()
        if missing:
            raise ConfigurationError(
                "Missing required environment variables for enabled features: "
                + ", ".join(missing),
                missing=missing,
            )

        incident = split_recipients(self.irt_email_address)
        return NotificationConfig(
            enable_email=self.enable_email_notifications,
            enable_chat=self.enable_teams_notifications,
            enable_sms=self.enable_sms_notifications,
            enable_ticketing=self.enable_ticket_creation,
            email_provider=self.email_provider,
            incident_recipients=incident,
            inquiry_recipients=split_recipients(self.inquiry_email_address) or incident,
            failure_recipients=split_recipients(self.ticket_failure_email_address) or incident,
            sms_from_number=self.twilio_from_number,
            sms_to_number=self.oncall_phone_number,
            ticket_board=self.connectwise_board_name,
            ticket_company_identifier=self.connectwise_company_identifier,
        )


@lru_cache(maxsize=1)
def _get_settings_cached() -> Settings:
    return Settings()


def get_settings() -> Settings:
    # Under pytest, env vars change via monkeypatch: never hand out a frozen copy.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return Settings()
    return _get_settings_cached()
