"""
Notification rules.

Each rule is a pure function of a Snapshot that returns the (type, message)
candidates it wants emitted. Rules never write anything; the engine owns
de-duplication and appending to the log.

The message text is part of the de-duplication key, so keep it stable for a
given underlying condition (e.g. the deadline rule embeds the date, not the
time of day).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from krocs import queries
from krocs.helpers import DAY, add_days, parse_timestamp, to_date, weekday_name
from krocs.models import Event, NotificationType, Settings, Task, TaskStatus

logger = logging.getLogger(__name__)

Candidate = tuple[NotificationType, str]

WEEKLY_REVIEW_MESSAGE = "Time to review this week's plan."


@dataclass(frozen=True)
class Snapshot:
    """Everything a rule may look at. Tasks and events are live views."""

    tasks: list[Task]
    events: list[Event]
    settings: Settings
    now: datetime  # aware, local


@dataclass(frozen=True)
class Rule:
    name: str
    evaluate: Callable[[Snapshot], list[Candidate]]


# =============================================================================
# MESSAGES
# =============================================================================


def buffer_message(percentage: int) -> str:
    return f"Buffer usage has reached {percentage}%."


def unscheduled_message(title: str) -> str:
    return f"Unscheduled task: {title}"


def deadline_message(title: str, deadline: str) -> str:
    return f"Deadline approaching: {title} ({deadline})"


# =============================================================================
# RULES
# =============================================================================


def buffer_rule(snapshot: Snapshot) -> list[Candidate]:
    """Warn once scheduled time reaches the threshold share of available time."""
    config = snapshot.settings.notifications.buffer_warning
    if config is None or not config.enabled:
        return []

    percentage = queries.buffer_usage_percent(snapshot.settings, snapshot.events)
    if percentage >= config.threshold_percent:
        return [(NotificationType.BUFFER, buffer_message(percentage))]
    return []


def unscheduled_rule(snapshot: Snapshot) -> list[Candidate]:
    """Flag pending tasks that have gone ``days`` or more without any event."""
    config = snapshot.settings.notifications.unscheduled_task
    if config is None or not config.enabled:
        return []

    candidates = []
    for task in queries.unscheduled(snapshot.tasks, snapshot.events):
        created_at = parse_timestamp(task.created_at)
        if created_at is None:
            logger.debug("Skipping task %s: unparseable created_at %r", task.id, task.created_at)
            continue
        age_days = (snapshot.now - created_at) // DAY
        if age_days >= config.days:
            candidates.append((NotificationType.UNSCHEDULED, unscheduled_message(task.title)))
    return candidates


def deadline_rule(snapshot: Snapshot) -> list[Candidate]:
    """Remind about unfinished tasks due today or tomorrow (local calendar)."""
    config = snapshot.settings.notifications.deadline_reminder
    if config is None or not config.enabled:
        return []

    today = snapshot.now.date()
    window = {today, add_days(today, 1)}

    candidates = []
    for task in snapshot.tasks:
        if not task.deadline or task.status == TaskStatus.COMPLETED:
            continue
        deadline = to_date(task.deadline)
        if deadline is None:
            logger.debug("Skipping task %s: unparseable deadline %r", task.id, task.deadline)
            continue
        if deadline in window:
            candidates.append((NotificationType.DEADLINE, deadline_message(task.title, deadline.isoformat())))
    return candidates


def weekly_review_rule(snapshot: Snapshot) -> list[Candidate]:
    """Nudge a plan review on the configured weekday."""
    config = snapshot.settings.notifications.weekly_review
    if config is None or not config.enabled:
        return []

    if weekday_name(snapshot.now).lower() == (config.day or "").strip().lower():
        return [(NotificationType.WEEKLY_REVIEW, WEEKLY_REVIEW_MESSAGE)]
    return []


# Evaluation order. Results do not depend on it; log order does.
DEFAULT_RULES: tuple[Rule, ...] = (
    Rule("buffer", buffer_rule),
    Rule("unscheduled", unscheduled_rule),
    Rule("deadline", deadline_rule),
    Rule("weekly_review", weekly_review_rule),
)
