"""
Webhook processing pipeline for one inbound call event.

Received -> Verified -> Filtered(call_analyzed) -> Classified -> Validated
-> {Skipped | Dispatched} -> Completed
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from callnotify.calls.classifier import Classification, classify, effective_path
from callnotify.calls.events import CallAnalysisEvent, EventKind, parse_event
from callnotify.calls.validation import validate
from callnotify.notifications.dispatcher import DispatchStatus, NotificationDispatcher
from callnotify.shared.logging import correlation_id_var, get_logger
from callnotify.webhooks.signature import SignatureVerifier

logger = get_logger(__name__)

ProcessingStatus = Literal["processed", "ignored", "skipped"]


class ProcessingResult(BaseModel):
    """Structured, always-successful response body for an accepted event."""

    success: bool = True
    status: ProcessingStatus
    message: str
    call_id: str | None = None
    event: str | None = None
    classification: Classification | None = None
    validation: dict[str, Any] | None = None
    notifications: dict[str, Any] = Field(default_factory=dict)


def should_process(event: CallAnalysisEvent) -> bool:
    """Only analysis-complete events go past the filter."""
    return event.kind == EventKind.ANALYZED


class WebhookProcessor:
    """Runs the verification, classification and dispatch pipeline."""

    def __init__(self, verifier: SignatureVerifier, dispatcher: NotificationDispatcher) -> None:
        self._verifier = verifier
        self._dispatcher = dispatcher

    async def aclose(self) -> None:
        await self._dispatcher.aclose()

    async def process(self, raw_body: bytes, signature: str | None) -> ProcessingResult:
        """Process one webhook request.

        Raises:
            MissingWebhookSecretError, InvalidSignatureError: before any parsing.
            PayloadError: verified body is not a usable event.
        """
        self._verifier.verify(raw_body, signature)
        event = parse_event(raw_body)

        token = correlation_id_var.set(event.call_id)
        try:
            return await self._handle(event)
        finally:
            correlation_id_var.reset(token)

    async def _handle(self, event: CallAnalysisEvent) -> ProcessingResult:
        if not should_process(event):
            logger.info("Event acknowledged, not processed", extra={"call_id": event.call_id, "event": event.event})
            return ProcessingResult(
                status="ignored",
                message=f"Event '{event.event}' acknowledged, not processed",
                call_id=event.call_id,
                event=event.event,
            )

        classification = classify(event.fields)
        if classification == Classification.UNCLASSIFIED:
            logger.warning(
                "Call matched neither incident nor inquiry rules; using incident path",
                extra={"call_id": event.call_id},
            )
        logger.info(
            "Call classified",
            extra={
                "call_id": event.call_id,
                "classification": classification.value,
                "path": effective_path(classification).value,
            },
        )

        validation = validate(classification, event.fields)
        outcome = await self._dispatcher.dispatch(event, classification, validation)

        if outcome.status == DispatchStatus.SKIPPED:
            return ProcessingResult(
                status="skipped",
                message="Skipped: missing required data",
                call_id=event.call_id,
                event=event.event,
                classification=classification,
                validation=validation.to_dict(),
                notifications=outcome.to_dict(),
            )

        return ProcessingResult(
            status="processed",
            message="Webhook processed successfully",
            call_id=event.call_id,
            event=event.event,
            classification=classification,
            validation=validation.to_dict(),
            notifications=outcome.to_dict(),
        )
