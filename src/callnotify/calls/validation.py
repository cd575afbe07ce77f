"""
Minimum-field validation per call classification.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from callnotify.calls.classifier import Classification, effective_path
from callnotify.calls.fields import AnalysisFields, has_value

MISSING_INCIDENT_FLAG = "security incident confirmation (is_security_incident must be true)"
UNEXPECTED_INCIDENT_FLAG = "non-incident confirmation (is_security_incident must not be true)"
MISSING_CALLER_NAME = "caller name"
MISSING_COMPANY_NAME = "company name"
MISSING_PHONE_NUMBER = "caller phone number"
MISSING_CONTACT_INFO = "contact information (phone number or email address)"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation run; valid exactly when nothing is missing."""

    missing_fields: tuple[str, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.missing_fields

    def to_dict(self) -> dict[str, object]:
        return {"valid": self.valid, "missing_fields": list(self.missing_fields)}


def _validate_incident(fields: AnalysisFields) -> list[str]:
    missing: list[str] = []
    if fields.is_security_incident is not True:
        missing.append(MISSING_INCIDENT_FLAG)
    if not has_value(fields.caller_name):
        missing.append(MISSING_CALLER_NAME)
    if not has_value(fields.company_name):
        missing.append(MISSING_COMPANY_NAME)
    if not has_value(fields.caller_phone_number):
        missing.append(MISSING_PHONE_NUMBER)
    return missing


def _validate_inquiry(fields: AnalysisFields) -> list[str]:
    missing: list[str] = []
    if fields.is_security_incident is True:
        missing.append(UNEXPECTED_INCIDENT_FLAG)
    if not has_value(fields.caller_name):
        missing.append(MISSING_CALLER_NAME)
    if not (has_value(fields.caller_phone_number) or has_value(fields.caller_email_address)):
        missing.append(MISSING_CONTACT_INFO)
    return missing


def validate(classification: Classification, fields: AnalysisFields) -> ValidationResult:
    """Check the minimum fields required to notify for this classification.

    Pure: the same inputs always give the same result.
    """
    if effective_path(classification) == Classification.INQUIRY:
        missing = _validate_inquiry(fields)
    else:
        missing = _validate_incident(fields)
    return ValidationResult(missing_fields=tuple(missing))
