"""
Message bodies for each notification channel.

Email bodies are jinja2 templates; HTML output is autoescaped, plain text is not.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from jinja2 import DictLoader, Environment, select_autoescape

from callnotify.calls.events import CallAnalysisEvent
from callnotify.calls.fields import AnalysisFields, has_value

NOT_AVAILABLE = "N/A"
NO_DESCRIPTION = "No description provided"
TICKET_SUMMARY_MAX = 100

EMAIL_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background-color: {{ header_color }}; color: white; padding: 20px; text-align: center; }
        .content { background-color: #f5f5f5; padding: 20px; margin-top: 20px; }
        .field { margin-bottom: 15px; }
        .label { font-weight: bold; color: #555; }
        .value { margin-top: 5px; }
        .description-box { background-color: #fff3cd; border-left: 4px solid #ffc107; padding: 15px; margin-top: 20px; }
        .footer { margin-top: 20px; padding-top: 20px; border-top: 1px solid #ddd; font-size: 12px; color: #777; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>{{ title }}</h1></div>
        <div class="content">
            {% for label, value in facts %}
            <div class="field"><div class="label">{{ label }}:</div><div class="value">{{ value }}</div></div>
            {% endfor %}
            <div class="description-box">
                <div class="label">{{ box_label }}:</div>
                <div class="value">{{ box_text }}</div>
            </div>
            <div class="field" style="margin-top: 20px;"><div class="label">Call ID:</div><div class="value">{{ call_id }}</div></div>
            <div class="field"><div class="label">Call Summary:</div><div class="value">{{ summary }}</div></div>
        </div>
        <div class="footer">
            <p>This is an automated notification from the Incident Response hotline.</p>
            <p>Received: {{ received_at }}</p>
        </div>
    </div>
</body>
</html>
"""

EMAIL_TEXT_TEMPLATE = """{{ title }}
{{ "=" * title|length }}

{% for label, value in facts %}
{{ label }}: {{ value }}
{% endfor %}

{{ box_label }}:
{{ box_text }}

Call ID: {{ call_id }}
Call Summary: {{ summary }}
Received: {{ received_at }}
"""

_env = Environment(
    loader=DictLoader({"email.html": EMAIL_HTML_TEMPLATE, "email.txt": EMAIL_TEXT_TEMPLATE}),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class EmailContent:
    subject: str
    html_body: str
    text_body: str


def _text(value: str | None, default: str = NOT_AVAILABLE) -> str:
    return value if has_value(value) else default


def _yes_no(value: bool | None) -> str:
    if value is None:
        return "Unknown"
    return "Yes" if value else "No"


def _received_at(event: CallAnalysisEvent) -> str:
    started = event.started_at or datetime.now().astimezone()
    return started.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def _incident_facts(fields: AnalysisFields) -> list[tuple[str, str]]:
    return [
        ("Company Name", _text(fields.company_name)),
        ("Caller Name", _text(fields.caller_name)),
        ("Caller Email", _text(fields.caller_email_address)),
        ("Caller Phone", _text(fields.caller_phone_number)),
        ("Location", _text(fields.incident_location)),
        ("Current Customer", _yes_no(fields.current_customer)),
        ("Primary Contact", _yes_no(fields.incident_is_customer_primary_contact)),
        ("Cyber Liability Insurance", _yes_no(fields.incident_liability_insurance_status)),
        ("Insurance Provider", _text(fields.cybersecurity_insurance_provider_name)),
    ]


def _inquiry_facts(fields: AnalysisFields) -> list[tuple[str, str]]:
    return [
        ("Caller Name", _text(fields.caller_name)),
        ("Company Name", _text(fields.company_name)),
        ("Caller Email", _text(fields.caller_email_address)),
        ("Caller Phone", _text(fields.caller_phone_number)),
        ("Current Customer", _yes_no(fields.current_customer)),
    ]


def _context(title: str, facts: list[tuple[str, str]], box_label: str, box_text: str,
             event: CallAnalysisEvent, header_color: str = "#d32f2f") -> dict[str, Any]:
    return {
        "title": title,
        "header_color": header_color,
        "facts": facts,
        "box_label": box_label,
        "box_text": box_text,
        "call_id": event.call_id,
        "summary": _text(event.summary),
        "received_at": _received_at(event),
    }


def _render(subject: str, context: dict[str, Any]) -> EmailContent:
    return EmailContent(
        subject=subject,
        html_body=_env.get_template("email.html").render(**context),
        text_body=_env.get_template("email.txt").render(**context),
    )


def incident_email(event: CallAnalysisEvent) -> EmailContent:
    fields = event.fields
    title = "New Cybersecurity Incident Reported"
    description = _text(fields.incident_description, NO_DESCRIPTION)
    context = _context(title, _incident_facts(fields), "Incident Description", description, event)
    return _render(f"{title}: {_text(fields.company_name, 'Unknown Company')}", context)


def inquiry_email(event: CallAnalysisEvent) -> EmailContent:
    fields = event.fields
    title = "New Inquiry Call"
    reason = _text(fields.inquiry_text, NO_DESCRIPTION)
    company = _text(fields.company_name, "No company")
    context = _context(title, _inquiry_facts(fields), "Inquiry Reason", reason, event, header_color="#1565c0")
    return _render(f"{title}: {_text(fields.caller_name, 'Unknown Caller')} ({company})", context)


def ticket_failure_email(event: CallAnalysisEvent, error: str) -> EmailContent:
    """Alert sent when the ticket could not be created; staff create it by hand."""
    fields = event.fields
    facts = [("Error", error)] + _incident_facts(fields)
    description = _text(fields.incident_description, NO_DESCRIPTION)
    context = _context("Ticket Creation Failed", facts, "Incident Description", description, event,
                       header_color="#6a1b9a")
    return _render(f"ALERT: Ticket creation failed for call {event.call_id}", context)


def incident_card(event: CallAnalysisEvent) -> dict[str, Any]:
    """Teams incoming-webhook message carrying an Adaptive Card."""
    fields = event.fields
    facts = [
        {"title": "Company:", "value": _text(fields.company_name, "Unknown Company")},
        {"title": "Caller:", "value": _text(fields.caller_name, "Unknown Caller")},
        {"title": "Phone:", "value": _text(fields.caller_phone_number)},
        {"title": "Email:", "value": _text(fields.caller_email_address)},
        {"title": "Location:", "value": _text(fields.incident_location)},
        {"title": "Current Customer:", "value": _yes_no(fields.current_customer)},
        {"title": "Cyber Insurance:", "value": _yes_no(fields.incident_liability_insurance_status)},
        {"title": "Insurance Provider:", "value": _text(fields.cybersecurity_insurance_provider_name)},
    ]
    return {
        "type": "message",
        "attachments": [
            {
                "contentType": "application/vnd.microsoft.card.adaptive",
                "content": {
                    "type": "AdaptiveCard",
                    "version": "1.4",
                    "body": [
                        {
                            "type": "Container",
                            "style": "attention",
                            "items": [
                                {
                                    "type": "TextBlock",
                                    "text": "New Cybersecurity Incident Reported",
                                    "weight": "bolder",
                                    "size": "large",
                                    "wrap": True,
                                    "color": "attention",
                                }
                            ],
                        },
                        {"type": "FactSet", "facts": facts},
                        {
                            "type": "Container",
                            "style": "warning",
                            "items": [
                                {"type": "TextBlock", "text": "Incident Description", "weight": "bolder", "wrap": True},
                                {
                                    "type": "TextBlock",
                                    "text": _text(fields.incident_description, NO_DESCRIPTION),
                                    "wrap": True,
                                    "spacing": "small",
                                },
                            ],
                        },
                        {
                            "type": "TextBlock",
                            "text": f"Call ID: {event.call_id}",
                            "size": "small",
                            "isSubtle": True,
                            "wrap": True,
                            "spacing": "medium",
                        },
                        {
                            "type": "TextBlock",
                            "text": f"Received: {_received_at(event)}",
                            "size": "small",
                            "isSubtle": True,
                            "wrap": True,
                        },
                    ],
                },
            }
        ],
    }


def incident_sms(event: CallAnalysisEvent) -> str:
    fields = event.fields
    caller = _text(fields.caller_name, "Unknown Caller")
    company = _text(fields.company_name, "Unknown Company")
    return f"New IR Alert: Incident reported by {caller} from {company}. Check email/Teams for details."


def ticket_fields(event: CallAnalysisEvent, board: str, company_identifier: str) -> dict[str, Any]:
    """Service-ticket body for the ticket tracker."""
    fields = event.fields
    company = _text(fields.company_name, "Unknown Company")
    summary = f"IR Hotline: {company} - {_text(fields.caller_name, 'Unknown Caller')}"
    context = _context(
        "Cybersecurity Incident Reported via Hotline",
        _incident_facts(fields),
        "Incident Description",
        _text(fields.incident_description, NO_DESCRIPTION),
        event,
    )
    description = _env.get_template("email.txt").render(**context)
    ticket: dict[str, Any] = {
        "summary": summary[:TICKET_SUMMARY_MAX],
        "initialDescription": description,
        "board": {"name": board},
        "company": {"identifier": company_identifier},
        "contactName": _text(fields.caller_name, ""),
        "contactPhoneNumber": _text(fields.caller_phone_number, ""),
        "contactEmailAddress": _text(fields.caller_email_address, ""),
        "externalXRef": event.call_id,
    }
    return {k: v for k, v in ticket.items() if v != ""}
