"""
Canonical analysis fields and boundary normalization.

Voice-agent payloads carry the post-call analysis under differently named
keys depending on the agent version. Everything downstream reads the single
canonical AnalysisFields model produced here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

# Values that are technically present but mean "the caller did not say".
PLACEHOLDER_VALUES = frozenset({"not provided", "n/a", "na", "unknown", "none", "null"})

_TRUE_STRINGS = frozenset({"true", "yes", "y", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "0"})

# canonical name -> source keys, first match wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "caller_name": ("caller_name",),
    "company_name": ("company_name",),
    "caller_phone_number": ("caller_phone_number", "phone_number"),
    "caller_email_address": ("caller_email_address", "caller_email", "email"),
    "incident_location": ("incident_location", "location"),
    "incident_liability_insurance_status": ("incident_liability_insurance_status",),
    "cybersecurity_insurance_provider_name": ("cybersecurity_insurance_provider_name",),
    "current_customer": ("current_customer",),
    "incident_is_customer_primary_contact": ("incident_is_customer_primary_contact",),
    "incident_description": ("IR_call_description", "incident_description"),
    "inquiry_reason": ("non_IR_inquiry_reason", "inquiry_reason"),
    "inquiry_description": ("non_IR_inquiry_description", "inquiry_description"),
    "is_security_incident": ("is_security_incident", "is_cybersecurity_incident", "is_IR_call"),
}

BOOLEAN_FIELDS = frozenset(
    {
        "is_security_incident",
        "current_customer",
        "incident_is_customer_primary_contact",
        "incident_liability_insurance_status",
    }
)


def to_bool(value: Any) -> bool | None:
    """Tri-state boolean normalization: True, False or None (unknown)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


def to_text(value: Any) -> str | None:
    """Strip scalar values to text; empty strings and non-scalars become None."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value).strip()
    return text or None


def is_placeholder(value: str | None) -> bool:
    """True for absent, blank or placeholder text such as "Not provided"."""
    if value is None:
        return True
    text = value.strip()
    return not text or text.lower() in PLACEHOLDER_VALUES


def has_value(value: str | None) -> bool:
    return not is_placeholder(value)


class AnalysisFields(BaseModel):
    """Canonical post-call analysis fields.

    Text fields are stripped strings or None. Boolean-ish fields have already
    been through to_bool() and are True, False or None.
    """

    model_config = ConfigDict(frozen=True)

    caller_name: str | None = None
    company_name: str | None = None
    caller_phone_number: str | None = None
    caller_email_address: str | None = None
    incident_location: str | None = None
    incident_liability_insurance_status: bool | None = None
    cybersecurity_insurance_provider_name: str | None = None
    current_customer: bool | None = None
    incident_is_customer_primary_contact: bool | None = None
    incident_description: str | None = None
    inquiry_reason: str | None = None
    inquiry_description: str | None = None
    is_security_incident: bool | None = None

    @property
    def inquiry_text(self) -> str | None:
        """Inquiry reason, falling back to the inquiry description."""
        return next((v for v in (self.inquiry_reason, self.inquiry_description) if has_value(v)), None)


def normalize_analysis(raw: Mapping[str, Any] | None) -> AnalysisFields:
    """Map a raw analysis object (either payload shape) to AnalysisFields."""
    if not raw:
        return AnalysisFields()

    values: dict[str, Any] = {}
    for canonical, keys in FIELD_ALIASES.items():
        present = [raw[k] for k in keys if k in raw]
        if canonical in BOOLEAN_FIELDS:
            values[canonical] = next((b for b in map(to_bool, present) if b is not None), None)
            continue
        texts = [t for t in map(to_text, present) if t is not None]
        # A real value under any alias beats a blank or placeholder one.
        values[canonical] = next((t for t in texts if has_value(t)), texts[0] if texts else None)
    return AnalysisFields(**values)
