"""
Call classification: incident report vs. general inquiry.
"""

from enum import Enum

from callnotify.calls.fields import AnalysisFields, has_value


class Classification(str, Enum):
    """Kind of call, derived from the analysis fields."""

    INCIDENT = "incident"
    INQUIRY = "inquiry"
    UNCLASSIFIED = "unclassified"


def classify(fields: AnalysisFields) -> Classification:
    """Classify a call.

    The explicit security-incident flag always wins. Incident text is
    checked before inquiry text, so a call carrying both is an incident.
    """
    is_flagged = fields.is_security_incident is True
    if is_flagged or has_value(fields.incident_description):
        return Classification.INCIDENT

    if has_value(fields.inquiry_reason) or has_value(fields.inquiry_description):
        return Classification.INQUIRY

    return Classification.UNCLASSIFIED


def effective_path(classification: Classification) -> Classification:
    """Validation/channel path for a classification.

    Unclassified calls take the incident path (strictest validation, widest
    channel set).
    """
    if classification == Classification.UNCLASSIFIED:
        return Classification.INCIDENT
    return classification
