"""
Inbound webhook package.

Keep import side-effect free.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from callnotify.webhooks.processor import WebhookProcessor  # noqa: F401
