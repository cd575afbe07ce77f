"""
FastAPI router for voice-agent webhook endpoints.

Key constraints:
- signature is checked against the raw body before anything is parsed
- accepted events always get 200, even when some channels failed
- only auth failures, unusable payloads and unexpected errors fail the request
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from callnotify.config import get_settings
from callnotify.notifications.factory import create_dispatcher
from callnotify.shared.exceptions import (
    ConfigurationError,
    InvalidSignatureError,
    MissingWebhookSecretError,
    NotifierError,
    PayloadError,
)
from callnotify.shared.logging import get_logger
from callnotify.webhooks.processor import WebhookProcessor
from callnotify.webhooks.signature import SIGNATURE_HEADER, SignatureVerifier

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@lru_cache(maxsize=1)
def _build_processor() -> WebhookProcessor:
    settings = get_settings()
    verifier = SignatureVerifier(
        settings.retell_webhook_secret,
        tolerance_seconds=settings.signature_tolerance_seconds,
    )
    return WebhookProcessor(verifier=verifier, dispatcher=create_dispatcher(settings))


def get_webhook_processor() -> WebhookProcessor:
    return _build_processor()


async def close_webhook_processor() -> None:
    """Close the cached processor's channel clients, if one was built."""
    if _build_processor.cache_info().currsize:
        await _build_processor().aclose()
        _build_processor.cache_clear()


def error_response(exc: Exception) -> JSONResponse:
    """Map a request-level failure to its HTTP response."""
    if isinstance(exc, MissingWebhookSecretError):
        logger.error("Webhook secret not configured; rejecting request")
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    elif isinstance(exc, InvalidSignatureError):
        logger.warning("Webhook signature rejected", extra={"reason": exc.error_code})
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, PayloadError):
        logger.warning("Webhook payload rejected", extra={"reason": exc.error_code})
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ConfigurationError):
        logger.error("Notification configuration invalid", extra={"missing": exc.missing})
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        logger.error("Error processing webhook", exc_info=exc)
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    body: dict[str, object] = {"success": False, "error": str(exc) or "Unknown error occurred"}
    if isinstance(exc, NotifierError) and exc.error_code:
        body["error_code"] = exc.error_code
    return JSONResponse(status_code=code, content=body)


@router.post("/retell", status_code=status.HTTP_200_OK)
async def receive_call_event(
    request: Request,
    processor: Annotated[WebhookProcessor, Depends(get_webhook_processor)],
) -> JSONResponse:
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    try:
        result = await processor.process(raw_body, signature)
    except Exception as exc:
        return error_response(exc)

    return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump(mode="json"))
