"""
Domain exceptions for the call-analysis webhook.

Authentication and payload errors fail the request. Channel errors are
raised by adapters and absorbed per task by the dispatcher.
"""

from typing import Any


class NotifierError(Exception):
    """Base exception for all webhook notifier errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class WebhookAuthError(NotifierError):
    """Inbound event could not be authenticated."""


class MissingWebhookSecretError(WebhookAuthError):
    """No shared secret configured (server misconfiguration)."""


class InvalidSignatureError(WebhookAuthError):
    """Signature header missing, malformed, stale or mismatched."""


class PayloadError(NotifierError):
    """Verified body is not a usable call event."""


class ConfigurationError(NotifierError):
    """An enabled channel is missing required settings."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message, error_code="CONFIGURATION_ERROR", details={"missing": missing or []})
        self.missing = list(missing or [])


class ChannelError(NotifierError):
    """A notification channel call failed."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code)
        self.provider_response = provider_response or {}


class TicketCreationError(ChannelError):
    """The ticket tracker rejected or failed the ticket request."""
