"""
Call-analysis webhook notifier.

Turns analyzed voice-agent calls into incident or inquiry notifications
(email, Teams, SMS, ticket).
"""

__version__ = "0.1.0"
