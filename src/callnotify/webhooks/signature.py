"""
Webhook signature verification.

The voice-agent platform signs each request body with HMAC-SHA256 and sends
the result in the x-retell-signature header as "v=<timestamp_ms>,d=<hex>",
where the digest covers the raw body followed by the timestamp. A bare hex
digest of the body alone is also accepted.

Verification always runs over the raw request bytes, never over re-serialized
JSON.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from collections.abc import Callable

from callnotify.shared.exceptions import InvalidSignatureError, MissingWebhookSecretError
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-retell-signature"


def _parse_header(signature: str) -> tuple[str | None, str]:
    """Split a signature header into (timestamp, digest)."""
    if "=" not in signature:
        return None, signature.strip()

    parts: dict[str, str] = {}
    for chunk in signature.split(","):
        key, sep, value = chunk.strip().partition("=")
        if not sep:
            raise InvalidSignatureError("Malformed signature header", error_code="MALFORMED_SIGNATURE")
        parts[key.strip()] = value.strip()

    timestamp = parts.get("v")
    digest = parts.get("d")
    if not timestamp or not digest:
        raise InvalidSignatureError("Malformed signature header", error_code="MALFORMED_SIGNATURE")
    return timestamp, digest


def compute_signature(raw_body: bytes, secret: str, timestamp: str | None = None) -> str:
    """Hex HMAC-SHA256 of the raw body (plus timestamp when given)."""
    message = raw_body + timestamp.encode("utf-8") if timestamp else raw_body
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class SignatureVerifier:
    """Verifies inbound webhook signatures with a shared secret."""

    def __init__(
        self,
        secret: str,
        tolerance_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._tolerance_seconds = tolerance_seconds
        self._clock = clock

    def verify(self, raw_body: bytes, signature: str | None) -> None:
        """Raise unless the signature matches the raw body.

        Raises:
            MissingWebhookSecretError: no secret configured (checked first).
            InvalidSignatureError: header missing, malformed, stale or wrong.
        """
        if not self._secret:
            raise MissingWebhookSecretError(
                "Webhook secret is not configured",
                error_code="MISSING_WEBHOOK_SECRET",
            )

        if not signature or not signature.strip():
            raise InvalidSignatureError("Missing signature header", error_code="MISSING_SIGNATURE")

        timestamp, digest = _parse_header(signature)

        if timestamp is not None:
            self._check_freshness(timestamp)

        expected = compute_signature(raw_body, self._secret, timestamp)
        if not hmac.compare_digest(expected, digest.lower()):
            logger.warning("Webhook signature mismatch", extra={"timestamped": timestamp is not None})
            raise InvalidSignatureError("Invalid webhook signature", error_code="SIGNATURE_MISMATCH")

    def is_valid(self, raw_body: bytes, signature: str | None) -> bool:
        """Boolean form of verify(); a missing secret still raises."""
        try:
            self.verify(raw_body, signature)
        except InvalidSignatureError:
            return False
        return True

    def _check_freshness(self, timestamp: str) -> None:
        if self._tolerance_seconds <= 0:
            return
        try:
            sent_at = int(timestamp) / 1000
        except ValueError as e:
            raise InvalidSignatureError(
                "Malformed signature timestamp",
                error_code="MALFORMED_SIGNATURE",
            ) from e
        if abs(self._clock() - sent_at) > self._tolerance_seconds:
            raise InvalidSignatureError("Signature timestamp outside tolerance", error_code="STALE_SIGNATURE")


def verify_signature(
    raw_body: bytes,
    secret: str,
    signature: str | None,
    tolerance_seconds: int = 300,
) -> bool:
    """Collaborator-style check: True when valid, False when not.

    A missing secret raises MissingWebhookSecretError rather than returning
    False, so misconfiguration is never mistaken for a bad client.
    """
    return SignatureVerifier(secret, tolerance_seconds=tolerance_seconds).is_valid(raw_body, signature)
