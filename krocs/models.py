"""
Planner records.

Every persisted record is a dataclass that round-trips through a plain dict
(``to_dict`` / ``from_dict``) so the stores can keep each collection as one
JSON array. Enums are StrEnums and serialize as their plain value.
"""

import copy
from dataclasses import asdict, dataclass, field, fields
from enum import StrEnum
from typing import Any

# =============================================================================
# ENUMS
# =============================================================================


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BufferPolicy(StrEnum):
    """What happens when scheduling would eat into the buffer."""

    WARN = "warn"
    BLOCK = "block"


class RecurrenceFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class NotificationType(StrEnum):
    DEADLINE = "deadline"
    BUFFER = "buffer"
    UNSCHEDULED = "unscheduled"
    WEEKLY_REVIEW = "weekly_review"


class TimeUnit(StrEnum):
    MINUTE = "minute"
    HOUR = "hour"


class CalendarView(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def _optional_enum(enum_cls, value):
    if value is None or value == "":
        return None
    return enum_cls(value)


# =============================================================================
# BASE
# =============================================================================


@dataclass
class Record:
    """Base for persisted records."""

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Build from a stored dict. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Entity(Record):
    """A record with identity, timestamps and a soft-delete tombstone."""

    id: str = ""
    deleted_at: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


# =============================================================================
# ENTITIES
# =============================================================================


@dataclass(kw_only=True)
class Project(Entity):
    name: str
    description: str | None = None
    success_criteria: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    priority: Priority | None = None
    weekly_buffer: int | None = None
    monthly_buffer: int | None = None
    buffer_policy: BufferPolicy | None = None

    def __post_init__(self):
        self.priority = _optional_enum(Priority, self.priority)
        self.buffer_policy = _optional_enum(BufferPolicy, self.buffer_policy)


@dataclass(kw_only=True)
class Task(Entity):
    project_id: str
    title: str
    description: str | None = None
    priority: Priority | None = None
    deadline: str | None = None
    estimated_time: int | None = None  # minutes
    actual_time: int | None = None  # minutes
    status: TaskStatus = TaskStatus.PENDING

    def __post_init__(self):
        self.priority = _optional_enum(Priority, self.priority)
        self.status = TaskStatus(self.status or TaskStatus.PENDING)


@dataclass
class RecurrenceRule(Record):
    """Stored as metadata only; occurrences are never expanded."""

    frequency: RecurrenceFrequency
    interval: int = 1
    end_date: str | None = None

    def __post_init__(self):
        self.frequency = RecurrenceFrequency(self.frequency)


@dataclass(kw_only=True)
class Event(Entity):
    """A concrete time block allocated to a task."""

    task_id: str
    project_id: str
    start_time: str
    end_time: str
    is_recurring: bool = False
    recurrence_rule: RecurrenceRule | None = None

    def __post_init__(self):
        if isinstance(self.recurrence_rule, dict):
            self.recurrence_rule = RecurrenceRule.from_dict(self.recurrence_rule)
        self.is_recurring = bool(self.is_recurring)


@dataclass(kw_only=True)
class PomodoroSession(Entity):
    task_id: str
    start_time: str
    end_time: str | None = None
    duration: int = 25  # minutes
    completed: bool = False


@dataclass(kw_only=True)
class Notification(Record):
    id: str = ""
    type: NotificationType
    message: str
    read: bool = False
    created_at: str = ""

    def __post_init__(self):
        self.type = NotificationType(self.type)

    @property
    def dedup_key(self) -> str:
        return dedup_key(self.type, self.message)


def dedup_key(type: str, message: str) -> str:
    """Identity of a notification for de-duplication: ``type:message``."""
    return f"{type}:{message}"


# =============================================================================
# SETTINGS
# =============================================================================


@dataclass
class DeadlineReminderConfig(Record):
    enabled: bool = True
    time: str = "09:00"


@dataclass
class BufferWarningConfig(Record):
    enabled: bool = True
    threshold_percent: int = 80

    def __post_init__(self):
        self.threshold_percent = int(self.threshold_percent)


@dataclass
class UnscheduledTaskConfig(Record):
    enabled: bool = True
    days: int = 3

    def __post_init__(self):
        self.days = int(self.days)


@dataclass
class WeeklyReviewConfig(Record):
    enabled: bool = True
    day: str = "Monday"
    time: str = "09:00"


@dataclass
class NotificationSettings(Record):
    deadline_reminder: DeadlineReminderConfig = field(default_factory=DeadlineReminderConfig)
    buffer_warning: BufferWarningConfig = field(default_factory=BufferWarningConfig)
    unscheduled_task: UnscheduledTaskConfig = field(default_factory=UnscheduledTaskConfig)
    weekly_review: WeeklyReviewConfig = field(default_factory=WeeklyReviewConfig)

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, dict):
                setattr(self, f.name, f.default_factory.from_dict(value))


_MINUTE_FIELDS = (
    "weekly_available_time",
    "monthly_available_time",
    "weekly_global_buffer",
    "monthly_global_buffer",
)


@dataclass
class Settings(Record):
    """Global planning configuration. Durations are in minutes."""

    weekly_available_time: int = 2400  # 40h
    monthly_available_time: int = 9600  # 160h
    weekly_global_buffer: int = 480  # 8h
    monthly_global_buffer: int = 1920  # 32h
    global_buffer_policy: BufferPolicy = BufferPolicy.WARN
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    time_unit: TimeUnit = TimeUnit.HOUR
    default_calendar_view: CalendarView = CalendarView.WEEK
    onboarding_completed: bool = False
    skipped_onboarding_steps: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.global_buffer_policy = BufferPolicy(self.global_buffer_policy)
        self.time_unit = TimeUnit(self.time_unit)
        self.default_calendar_view = CalendarView(self.default_calendar_view)
        for name in _MINUTE_FIELDS:
            setattr(self, name, int(getattr(self, name)))
        if isinstance(self.notifications, dict):
            self.notifications = NotificationSettings.from_dict(self.notifications)
        if not isinstance(self.notifications, NotificationSettings):
            raise TypeError(f"notifications must be a mapping, got {type(self.notifications).__name__}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Build from a (possibly partial or outdated) dict merged over defaults."""
        merged = deep_merge(cls().to_dict(), data or {})
        return super().from_dict(merged)


def deep_merge(base: dict, overlay: dict) -> dict:
    """Recursively merge *overlay* into a copy of *base*."""
    result = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result
