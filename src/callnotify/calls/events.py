"""
Domain event model for voice-agent call webhooks.

Two payload shapes reach this service:

- nested (current):  {"event": "call_analyzed", "call": {"call_id": ...,
  "call_analysis": {"call_summary": ..., "custom_analysis_data": {...}}}}
- flat (legacy):     {"call_id": ..., "summary": ..., "analysis": {...}}

normalize_payload() folds both into one CallAnalysisEvent.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from callnotify.calls.fields import AnalysisFields, normalize_analysis, to_text
from callnotify.shared.exceptions import PayloadError

# Epoch values above this are milliseconds.
_EPOCH_MS_THRESHOLD = 10_000_000_000


class EventKind(str, Enum):
    """Voice-agent webhook event types."""

    STARTED = "call_started"
    ENDED = "call_ended"
    ANALYZED = "call_analyzed"


class CallAnalysisEvent(BaseModel):
    """Normalized, immutable call event."""

    model_config = ConfigDict(frozen=True)

    event: str = Field(..., description="Raw event name from the payload")
    call_id: str = Field(..., description="Provider call identifier")
    agent_id: str | None = None
    summary: str | None = Field(default=None, description="Post-call summary")
    transcript: str | None = None
    started_at: datetime | None = None
    fields: AnalysisFields = Field(default_factory=AnalysisFields)

    @property
    def kind(self) -> EventKind | None:
        """Known event kind, or None for event names this service does not know."""
        try:
            return EventKind(self.event)
        except ValueError:
            return None


def _mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping) and value:
        return value
    return None


def _timestamp(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def select_analysis(payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """Return the first non-empty analysis object in a fixed lookup order."""
    call = _mapping(payload.get("call")) or {}
    call_analysis = _mapping(call.get("call_analysis")) or {}
    candidates = (
        call_analysis.get("custom_analysis_data"),
        payload.get("analysis"),
        call.get("analysis"),
    )
    for candidate in candidates:
        found = _mapping(candidate)
        if found is not None:
            return found
    return None


def normalize_payload(payload: Mapping[str, Any]) -> CallAnalysisEvent:
    """Build a CallAnalysisEvent from either payload shape.

    Raises:
        PayloadError: no call id could be found.
    """
    call = _mapping(payload.get("call")) or {}
    call_analysis = _mapping(call.get("call_analysis")) or {}
    analysis = select_analysis(payload)

    event_name = to_text(payload.get("event"))
    if event_name is None:
        # Legacy flat payloads were only ever sent for analyzed calls.
        if analysis is None:
            raise PayloadError("Missing event type in webhook payload", error_code="MISSING_EVENT")
        event_name = EventKind.ANALYZED.value

    call_id = to_text(call.get("call_id")) or to_text(payload.get("call_id"))
    if not call_id:
        raise PayloadError("Missing call_id in webhook payload", error_code="MISSING_CALL_ID")

    return CallAnalysisEvent(
        event=event_name,
        call_id=call_id,
        agent_id=to_text(call.get("agent_id")) or to_text(payload.get("agent_id")),
        summary=to_text(call_analysis.get("call_summary")) or to_text(payload.get("summary")),
        transcript=to_text(call.get("transcript")) or to_text(payload.get("transcript")),
        started_at=_timestamp(call.get("start_timestamp", payload.get("start_timestamp"))),
        fields=normalize_analysis(analysis),
    )


def parse_event(raw_body: bytes | str) -> CallAnalysisEvent:
    """Parse an already-verified raw body into a CallAnalysisEvent.

    Raises:
        PayloadError: body is not a JSON object or lacks a call id.
    """
    try:
        payload = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        raise PayloadError(f"Webhook body is not valid JSON: {e!s}", error_code="INVALID_JSON") from e

    if not isinstance(payload, dict):
        raise PayloadError("Webhook body must be a JSON object", error_code="INVALID_PAYLOAD")

    return normalize_payload(payload)
