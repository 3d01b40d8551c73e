# KROCS - Personal planning assistant
"""
Exports for the CLI, the API and other consumers.
"""

from .context import AppContext, open_context
from .notifier import NotificationEngine, sync_notifications

__all__ = [
    "AppContext",
    "open_context",
    "NotificationEngine",
    "sync_notifications",
]
