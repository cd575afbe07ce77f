"""
Notification channel factory.

Single source of truth for configuration: use Settings (pydantic-settings),
never read raw os.getenv() here.
"""

from __future__ import annotations

from callnotify.config import EmailProviderType, Settings
from callnotify.notifications.adapters.connectwise import ConnectWiseTicketClient
from callnotify.notifications.adapters.mock import (
    MockChatPoster,
    MockEmailSender,
    MockSmsSender,
    MockTicketClient,
)
from callnotify.notifications.adapters.sendgrid import SendGridEmailSender
from callnotify.notifications.adapters.smtp import SMTPEmailSender
from callnotify.notifications.adapters.teams import TeamsChatPoster
from callnotify.notifications.adapters.twilio_sms import TwilioSmsSender
from callnotify.notifications.dispatcher import NotificationDispatcher
from callnotify.notifications.interface import EmailSender, NotificationChannels
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)


def _mask(s: str, keep: int = 6) -> str:
    if not s:
        return ""
    if len(s) <= keep:
        return "*" * len(s)
    return f"{s[:keep]}***"


def create_email_sender(settings: Settings) -> EmailSender:
    """Email sender for the configured provider."""
    timeout = settings.channel_timeout_seconds
    if settings.email_provider == EmailProviderType.SENDGRID:
        return SendGridEmailSender(
            api_key=settings.sendgrid_api_key,
            from_email=settings.email_from_address,
            from_name=settings.email_from_name,
            timeout_seconds=timeout,
        )
    if settings.email_provider == EmailProviderType.SMTP:
        return SMTPEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_email=settings.email_from_address,
            from_name=settings.email_from_name,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout_seconds=timeout,
        )
    raise ValueError(f"Unsupported email_provider: {settings.email_provider}")


def create_channels(settings: Settings) -> NotificationChannels:
    """Adapters for every enabled channel; disabled channels stay unwired."""
    logger.info(
        "Notification channels resolved",
        extra={
            "email": settings.enable_email_notifications,
            "email_provider": settings.email_provider.value,
            "chat": settings.enable_teams_notifications,
            "sms": settings.enable_sms_notifications,
            "ticketing": settings.enable_ticket_creation,
            "mock": settings.use_mock_channels,
            "twilio_account_sid": _mask(settings.twilio_account_sid),
        },
    )

    if settings.use_mock_channels:
        return NotificationChannels(
            email=MockEmailSender() if settings.enable_email_notifications else None,
            chat=MockChatPoster() if settings.enable_teams_notifications else None,
            sms=MockSmsSender() if settings.enable_sms_notifications else None,
            ticketing=MockTicketClient() if settings.enable_ticket_creation else None,
        )

    timeout = settings.channel_timeout_seconds
    email = create_email_sender(settings) if settings.enable_email_notifications else None
    chat = (
        TeamsChatPoster(settings.teams_webhook_url, timeout_seconds=timeout)
        if settings.enable_teams_notifications
        else None
    )
    sms = (
        TwilioSmsSender(settings.twilio_account_sid, settings.twilio_auth_token, timeout_seconds=timeout)
        if settings.enable_sms_notifications
        else None
    )
    ticketing = (
        ConnectWiseTicketClient(
            base_url=settings.connectwise_base_url,
            company_id=settings.connectwise_company_id,
            public_key=settings.connectwise_public_key,
            private_key=settings.connectwise_private_key,
            client_id=settings.connectwise_client_id,
            timeout_seconds=timeout,
        )
        if settings.enable_ticket_creation
        else None
    )
    return NotificationChannels(email=email, chat=chat, sms=sms, ticketing=ticketing)


def create_dispatcher(settings: Settings, channels: NotificationChannels | None = None) -> NotificationDispatcher:
    """Dispatcher for the given settings.

    Raises:
        ConfigurationError: an enabled channel is missing its settings.
    """
    config = settings.notification_config()
    return NotificationDispatcher(channels or create_channels(settings), config)
