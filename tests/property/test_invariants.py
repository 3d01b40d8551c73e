"""
Property-based tests for notification invariants using Hypothesis.

These tests stress the engine with random planners to find edge cases.
"""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from krocs.context import open_context
from krocs.helpers import round_half_up
from krocs.models import Event, Settings, Task, TaskStatus
from krocs.notifier import sync_notifications
from krocs.notifier.rules import DEFAULT_RULES, Snapshot
from krocs.queries import buffer_usage_percent

NOW = datetime(2026, 2, 16, 10, 0).astimezone()

# ============================================================================
# Strategies
# ============================================================================

titles = st.sampled_from(["Report", "Taxes", "Slides", "Garden", "Report"])

task_fields = st.fixed_dictionaries(
    {
        "title": titles,
        "status": st.sampled_from(list(TaskStatus)),
        "age_days": st.integers(min_value=0, max_value=10),
        "deadline_offset": st.one_of(st.none(), st.integers(min_value=-3, max_value=3)),
        "deleted": st.booleans(),
    }
)

event_fields = st.fixed_dictionaries(
    {
        "task_index": st.integers(min_value=0, max_value=7),
        "offset_hours": st.integers(min_value=-48, max_value=168),
        "minutes": st.integers(min_value=-60, max_value=900),
        "deleted": st.booleans(),
    }
)


def build_planner(ctx, tasks, events):
    project_id = ctx.projects.add(name="Random")
    task_ids = []
    for fields in tasks:
        deadline = None
        if fields["deadline_offset"] is not None:
            deadline = (NOW + timedelta(days=fields["deadline_offset"])).date().isoformat()
        task_id = ctx.tasks.add(
            project_id=project_id, title=fields["title"], status=fields["status"], deadline=deadline
        )
        ctx.tasks.update(task_id, created_at=(NOW - timedelta(days=fields["age_days"])).isoformat())
        if fields["deleted"]:
            ctx.tasks.remove(task_id)
        task_ids.append(task_id)

    for fields in events:
        if not task_ids:
            break
        start = NOW + timedelta(hours=fields["offset_hours"])
        event_id = ctx.events.add(
            task_id=task_ids[fields["task_index"] % len(task_ids)],
            project_id=project_id,
            start_time=start.isoformat(),
            end_time=(start + timedelta(minutes=fields["minutes"])).isoformat(),
        )
        if fields["deleted"]:
            ctx.events.remove(event_id)


# ============================================================================
# Engine Idempotence
# ============================================================================


@settings(max_examples=25, deadline=None)
@given(
    st.lists(task_fields, max_size=6),
    st.lists(event_fields, max_size=6),
    st.integers(min_value=0, max_value=6),
)
def test_sync_is_idempotent_and_never_duplicates(tasks, events, day_offset):
    """A second sync over unchanged state emits nothing; keys stay unique."""
    with tempfile.TemporaryDirectory() as tmp:
        ctx = open_context(Path(tmp) / "planner.db")
        build_planner(ctx, tasks, events)
        now = NOW + timedelta(days=day_offset)

        first = sync_notifications(ctx, now)
        second = sync_notifications(ctx, now)

        log_keys = [n.dedup_key for n in ctx.notifications.all()]
        assert second == []
        assert len(log_keys) == len(set(log_keys))
        assert len(log_keys) == len(first)


# ============================================================================
# Rule Purity
# ============================================================================


def make_snapshot(tasks, minutes, available, buffer):
    task_objs = [
        Task(
            id=f"t{i}",
            project_id="p1",
            title=fields["title"],
            status=fields["status"],
            created_at=(NOW - timedelta(days=fields["age_days"])).isoformat(),
        )
        for i, fields in enumerate(tasks)
    ]
    events = [
        Event(
            id=f"e{i}",
            task_id=f"t{i}",
            project_id="p1",
            start_time=NOW.isoformat(),
            end_time=(NOW + timedelta(minutes=m)).isoformat(),
        )
        for i, m in enumerate(minutes)
    ]
    settings_ = Settings(weekly_available_time=available, weekly_global_buffer=buffer)
    return Snapshot(tasks=task_objs, events=events, settings=settings_, now=NOW)


@given(
    st.lists(task_fields, max_size=8),
    st.lists(st.integers(min_value=-120, max_value=3000), max_size=8),
    st.integers(min_value=0, max_value=5000),
    st.integers(min_value=0, max_value=5000),
)
def test_rules_are_deterministic(tasks, minutes, available, buffer):
    """Same snapshot, same candidates."""
    snapshot = make_snapshot(tasks, minutes, available, buffer)
    for rule in DEFAULT_RULES:
        assert rule.evaluate(snapshot) == rule.evaluate(snapshot)


@given(
    st.lists(st.integers(min_value=-120, max_value=3000), max_size=8),
    st.integers(min_value=0, max_value=5000),
    st.integers(min_value=0, max_value=5000),
)
def test_buffer_usage_is_never_negative(minutes, available, buffer):
    snapshot = make_snapshot([], minutes, available, buffer)
    percentage = buffer_usage_percent(snapshot.settings, snapshot.events)
    assert percentage >= 0
    if available <= buffer:
        assert percentage == 0


# ============================================================================
# Rounding
# ============================================================================


@given(st.integers(min_value=-10_000, max_value=10_000))
def test_half_values_round_up(n: int):
    assert round_half_up(n + 0.5) == n + 1
    assert round_half_up(n) == n


@given(st.floats(min_value=-1e6, max_value=1e6, allow_nan=False))
def test_rounding_stays_within_half(x: float):
    assert abs(round_half_up(x) - x) <= 0.5
