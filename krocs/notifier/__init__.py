"""
Notifier - derives user-facing alerts from tasks, events and settings.

Rules (buffer exhaustion, unscheduled task aging, deadline reminder, weekly
review) are evaluated by NotificationEngine and appended, de-duplicated by
type and message, to the notification log.
"""

from .engine import NotificationEngine, sync_notifications
from .rules import DEFAULT_RULES, Rule, Snapshot

__all__ = ["NotificationEngine", "sync_notifications", "DEFAULT_RULES", "Rule", "Snapshot"]
