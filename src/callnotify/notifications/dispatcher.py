"""
Notification dispatch: build the channel tasks for a classified call and run
them concurrently.

Every task runs to completion. A failing task never cancels or hides its
siblings; failures are collected into the DispatchOutcome next to successes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from callnotify.calls.classifier import Classification, effective_path
from callnotify.calls.events import CallAnalysisEvent
from callnotify.calls.validation import ValidationResult
from callnotify.config import NotificationConfig
from callnotify.notifications import formatting
from callnotify.notifications.interface import Channel, ChannelResult, NotificationChannels, TicketResult
from callnotify.shared.exceptions import ChannelError
from callnotify.shared.logging import get_logger

logger = get_logger(__name__)


class DispatchStatus(str, Enum):
    DISPATCHED = "dispatched"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TaskResult:
    """Settled outcome of one notification task."""

    name: str
    channel: Channel
    success: bool
    detail: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"task": self.name, "channel": self.channel.value, "success": self.success}
        if self.detail:
            data["detail"] = self.detail
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class NotificationTask:
    """A named unit of channel work.

    on_failure runs after `run` raises; its result is reported separately and
    never replaces the task's own failure.
    """

    name: str
    channel: Channel
    run: Callable[[], Awaitable[Any]]
    on_failure: Callable[[Exception], Awaitable[TaskResult]] | None = None


@dataclass(frozen=True)
class DispatchOutcome:
    status: DispatchStatus
    results: tuple[TaskResult, ...] = ()
    missing_fields: tuple[str, ...] = ()
    failure_alert: TaskResult | None = None

    @classmethod
    def skipped(cls, missing_fields: tuple[str, ...]) -> "DispatchOutcome":
        return cls(status=DispatchStatus.SKIPPED, missing_fields=tuple(missing_fields))

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failures(self) -> list[dict[str, str]]:
        return [{"task": r.name, "error": r.error or "unknown error"} for r in self.results if not r.success]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
            "failures": self.failures,
        }
        if self.missing_fields:
            data["missing_fields"] = list(self.missing_fields)
        if self.failure_alert is not None:
            data["failure_alert"] = self.failure_alert.to_dict()
        return data


def _describe(exc: BaseException) -> str:
    message = str(exc) or exc.__class__.__name__
    code = getattr(exc, "error_code", None)
    return f"{message} ({code})" if code else message


def _result_detail(value: Any) -> dict[str, Any]:
    if isinstance(value, TicketResult):
        return {"ticket_id": value.ticket_id}
    if isinstance(value, ChannelResult) and value.provider_message_id:
        return {"provider_message_id": value.provider_message_id}
    return {}


class NotificationDispatcher:
    """Builds and runs the notification tasks for one call event."""

    def __init__(self, channels: NotificationChannels, config: NotificationConfig) -> None:
        self._channels = channels
        self._config = config

    async def aclose(self) -> None:
        await self._channels.aclose()

    def build_tasks(self, event: CallAnalysisEvent, classification: Classification) -> list[NotificationTask]:
        """Tasks for enabled, wired channels on this classification's path.

        Inquiry calls only ever get the inquiry email.
        """
        cfg = self._config
        ch = self._channels
        tasks: list[NotificationTask] = []

        if effective_path(classification) == Classification.INQUIRY:
            if cfg.enable_email and ch.email is not None:
                tasks.append(NotificationTask("send_inquiry_email", Channel.EMAIL, lambda: self._send_inquiry_email(event)))
            return tasks

        if cfg.enable_ticketing and ch.ticketing is not None:
            on_failure = None
            if cfg.enable_email and ch.email is not None:
                on_failure = lambda exc: self._send_ticket_failure_alert(event, exc)  # noqa: E731
            tasks.append(
                NotificationTask("create_ticket", Channel.TICKETING, lambda: self._create_ticket(event), on_failure)
            )
        if cfg.enable_email and ch.email is not None:
            tasks.append(NotificationTask("send_incident_email", Channel.EMAIL, lambda: self._send_incident_email(event)))
        if cfg.enable_chat and ch.chat is not None:
            tasks.append(NotificationTask("post_chat_card", Channel.CHAT, lambda: self._post_chat_card(event)))
        if cfg.enable_sms and ch.sms is not None:
            tasks.append(NotificationTask("send_sms", Channel.SMS, lambda: self._send_sms(event)))
        return tasks

    async def dispatch(
        self,
        event: CallAnalysisEvent,
        classification: Classification,
        validation: ValidationResult,
    ) -> DispatchOutcome:
        if not validation.valid:
            logger.warning(
                "Required call data missing; notifications skipped",
                extra={"call_id": event.call_id, "missing_fields": list(validation.missing_fields)},
            )
            return DispatchOutcome.skipped(validation.missing_fields)

        tasks = self.build_tasks(event, classification)
        if not tasks:
            logger.warning(
                "No notification channels enabled for this call",
                extra={"call_id": event.call_id, "classification": classification.value},
            )
            return DispatchOutcome(status=DispatchStatus.DISPATCHED)

        logger.info(
            "Dispatching notifications",
            extra={"call_id": event.call_id, "tasks": [t.name for t in tasks]},
        )

        settled = await asyncio.gather(*(self._settle(task) for task in tasks))
        results = tuple(result for result, _ in settled)
        failure_alert = next((alert for _, alert in settled if alert is not None), None)

        outcome = DispatchOutcome(status=DispatchStatus.DISPATCHED, results=results, failure_alert=failure_alert)
        log = logger.warning if outcome.failed else logger.info
        log(
            "Notifications settled",
            extra={
                "call_id": event.call_id,
                "total": outcome.total,
                "successful": outcome.successful,
                "failed": outcome.failed,
                "failures": outcome.failures,
            },
        )
        return outcome

    async def _settle(self, task: NotificationTask) -> tuple[TaskResult, TaskResult | None]:
        """Run one task and turn any exception into a failed TaskResult."""
        try:
            value = await task.run()
        except Exception as exc:
            logger.error(
                "Notification task failed",
                exc_info=not isinstance(exc, ChannelError),
                extra={"task": task.name, "channel": task.channel.value, "error": _describe(exc)},
            )
            result = TaskResult(task.name, task.channel, success=False, error=_describe(exc))
            alert = None
            if task.on_failure is not None:
                alert = await task.on_failure(exc)
            return result, alert

        logger.info("Notification task succeeded", extra={"task": task.name, "channel": task.channel.value})
        return TaskResult(task.name, task.channel, success=True, detail=_result_detail(value)), None

    async def _create_ticket(self, event: CallAnalysisEvent) -> TicketResult:
        fields = formatting.ticket_fields(event, self._config.ticket_board, self._config.ticket_company_identifier)
        return await self._channels.ticketing.create_ticket(fields)

    async def _send_incident_email(self, event: CallAnalysisEvent) -> ChannelResult:
        content = formatting.incident_email(event)
        return await self._channels.email.send(
            list(self._config.incident_recipients), content.subject, content.html_body, content.text_body
        )

    async def _send_inquiry_email(self, event: CallAnalysisEvent) -> ChannelResult:
        content = formatting.inquiry_email(event)
        return await self._channels.email.send(
            list(self._config.inquiry_recipients), content.subject, content.html_body, content.text_body
        )

    async def _post_chat_card(self, event: CallAnalysisEvent) -> ChannelResult:
        return await self._channels.chat.post_card(formatting.incident_card(event))

    async def _send_sms(self, event: CallAnalysisEvent) -> ChannelResult:
        return await self._channels.sms.send_text(
            self._config.sms_to_number, self._config.sms_from_number, formatting.incident_sms(event)
        )

    async def _send_ticket_failure_alert(self, event: CallAnalysisEvent, error: Exception) -> TaskResult:
        name = "send_ticket_failure_alert"
        recipients = list(self._config.failure_recipients)
        if not recipients:
            logger.error("Ticket creation failed and no failure recipients are configured", extra={"call_id": event.call_id})
            return TaskResult(name, Channel.EMAIL, success=False, error="no failure recipients configured")

        try:
            content = formatting.ticket_failure_email(event, _describe(error))
            sent = await self._channels.email.send(recipients, content.subject, content.html_body, content.text_body)
        except Exception as exc:
            logger.error(
                "Ticket failure alert could not be sent",
                exc_info=not isinstance(exc, ChannelError),
                extra={"call_id": event.call_id, "error": _describe(exc)},
            )
            return TaskResult(name, Channel.EMAIL, success=False, error=_describe(exc))

        logger.info("Ticket failure alert sent", extra={"call_id": event.call_id, "recipients": recipients})
        return TaskResult(name, Channel.EMAIL, success=True, detail=_result_detail(sent))
