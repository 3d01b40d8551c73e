"""Read-side queries over current store snapshots.

Callers re-invoke these whenever they need a fresh view; nothing is cached.
The pure functions (taking lists) are shared with the notification rules.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime

from krocs.context import AppContext
from krocs.helpers import (
    minutes_between,
    month_end,
    month_start,
    round_half_up,
    to_date,
    to_local,
    week_end,
    week_start,
)
from krocs.models import Event, Settings, Task, TaskStatus


@dataclass
class Allocation:
    """Scheduled minutes for one project within a week or month."""

    project_id: str
    period: str
    start_date: str
    total_time: float
    percentage: int


def scheduled_task_ids(events: list[Event]) -> set[str]:
    """Task ids referenced by at least one of *events*."""
    return {e.task_id for e in events}


def event_minutes(event: Event) -> float:
    """Length of an event in minutes. Inverted or unparseable spans count as 0."""
    minutes = minutes_between(event.start_time, event.end_time)
    if minutes is None:
        return 0.0
    return max(0.0, minutes)


def scheduled_minutes(events: list[Event]) -> float:
    """Total scheduled minutes across *events*."""
    return sum(event_minutes(e) for e in events)


def available_minutes(settings: Settings) -> int:
    """Weekly time left once the global buffer is reserved."""
    return max(0, settings.weekly_available_time - settings.weekly_global_buffer)


def buffer_usage_percent(settings: Settings, events: list[Event]) -> int:
    """Scheduled time as a percentage of available weekly time; 0 if none is available."""
    available = available_minutes(settings)
    if available == 0:
        return 0
    return round_half_up(scheduled_minutes(events) / available * 100)


def unscheduled(tasks: list[Task], events: list[Event]) -> list[Task]:
    """Pending tasks no event points at."""
    scheduled = scheduled_task_ids(events)
    return [t for t in tasks if t.status == TaskStatus.PENDING and t.id not in scheduled]


def unscheduled_tasks(ctx: AppContext) -> list[Task]:
    """Live pending tasks without any live event."""
    return unscheduled(ctx.tasks.live(), ctx.events.live())


def buffer_usage(ctx: AppContext) -> int:
    return buffer_usage_percent(ctx.settings.get(), ctx.events.live())


def allocations(ctx: AppContext, period: str = "week", now: datetime | None = None) -> list[Allocation]:
    """
    Minutes scheduled per project for live events starting in the current
    Monday-based week (or calendar month), largest first.
    """
    today = to_local(now or datetime.now()).date()
    if period == "week":
        start, end = week_start(today), week_end(today)
    elif period == "month":
        start, end = month_start(today), month_end(today)
    else:
        raise ValueError(f"Unknown period: {period!r}")

    totals: dict[str, float] = defaultdict(float)
    for event in ctx.events.live():
        day = to_date(event.start_time)
        if day is not None and start <= day <= end:
            totals[event.project_id] += event_minutes(event)

    grand_total = sum(totals.values())
    result = [
        Allocation(
            project_id=project_id,
            period=period,
            start_date=start.isoformat(),
            total_time=minutes,
            percentage=round_half_up(minutes / grand_total * 100) if grand_total else 0,
        )
        for project_id, minutes in totals.items()
    ]
    return sorted(result, key=lambda a: a.total_time, reverse=True)
