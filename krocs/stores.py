"""
Stores - typed collections persisted through KeyValueStorage.

Every collection is one JSON array under its own key. Each operation reads
the current array, applies the change and writes it back under storage.lock,
so storage stays the single source of truth and nothing is cached between
calls. Records that no longer fit their model are skipped on read (with a
warning) and left untouched on write.

Soft delete: remove() stamps ``deleted_at``; live() is the only view the rest
of the system should read from.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, ClassVar, Generic, TypeVar

from krocs.helpers import generate_id, now_iso, parse_timestamp, to_date
from krocs.models import (
    Entity,
    Event,
    Notification,
    NotificationType,
    PomodoroSession,
    Project,
    Settings,
    Task,
    TaskStatus,
    deep_merge,
)
from krocs.storage import KeyValueStorage

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

_IMMUTABLE_FIELDS = frozenset({"id"})


def _read_array(storage: KeyValueStorage, key: str) -> list:
    """The raw stored array. Anything else (say, from a hand-edited import) reads as empty."""
    raw = storage.get(key, [])
    if not isinstance(raw, list):
        logger.warning("Ignoring stored %s: expected a list, got %s", key, type(raw).__name__)
        return []
    return raw


def _parse_record(model: type, key: str, raw: Any):
    """from_dict() one stored record, or None (logged) if it does not fit the model."""
    try:
        return model.from_dict(raw)
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning("Skipping unreadable %s record: %s", key, e)
        return None


class EntityCollection(Generic[E]):
    """add / update / soft-delete / list over one persisted array."""

    key: ClassVar[str]
    model: ClassVar[type]
    newest_first: ClassVar[bool] = False

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    # ==================== Persistence ====================

    # Writes go through the raw array so unreadable records are kept as they
    # are rather than dropped on the next save.

    def _raw(self) -> list:
        return _read_array(self.storage, self.key)

    def _load(self) -> list[E]:
        parsed = (_parse_record(self.model, self.key, raw) for raw in self._raw())
        return [item for item in parsed if item is not None]

    def _save(self, raw: list) -> None:
        self.storage.set(self.key, raw)

    # ==================== Reads ====================

    def all(self) -> list[E]:
        """Every record, tombstoned ones included."""
        return self._load()

    def live(self) -> list[E]:
        """Live view: records without a deletion tombstone."""
        return [item for item in self._load() if not item.is_deleted]

    def get(self, id: str) -> E | None:
        return next((item for item in self._load() if item.id == id), None)

    # ==================== Writes ====================

    def add(self, **fields: Any) -> str:
        """Create a record. Returns the new id."""
        now = now_iso()
        fields.pop("id", None)
        fields.update(id=generate_id(), created_at=now, updated_at=now)
        item = self.model.from_dict(fields)

        with self.storage.lock:
            raw = self._raw()
            if self.newest_first:
                raw.insert(0, item.to_dict())
            else:
                raw.append(item.to_dict())
            self._save(raw)

        logger.debug("Added %s %s", self.key, item.id)
        return item.id

    def update(self, id: str, **changes: Any) -> bool:
        """Merge *changes* into a record. No-op (False) if the id is unknown."""
        changes = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
        return self._mutate(id, lambda item: {**changes, "updated_at": now_iso()})

    def remove(self, id: str) -> bool:
        """Soft delete: stamp the tombstone, keep the record."""
        return self._mutate(id, lambda item: {"deleted_at": now_iso()})

    def _mutate(self, id: str, change_fn) -> bool:
        with self.storage.lock:
            raw = self._raw()
            for i, entry in enumerate(raw):
                item = _parse_record(self.model, self.key, entry)
                if item is not None and item.id == id:
                    raw[i] = self.model.from_dict({**item.to_dict(), **change_fn(item)}).to_dict()
                    self._save(raw)
                    return True
        return False


class ProjectStore(EntityCollection[Project]):
    key = "projects"
    model = Project

    def deleted(self) -> list[Project]:
        return [p for p in self._load() if p.is_deleted]

    def restore(self, id: str) -> bool:
        """Clear the tombstone of a soft-deleted project."""
        return self._mutate(id, lambda item: {"deleted_at": None, "updated_at": now_iso()})

    def permanently_delete(self, id: str) -> bool:
        """Physically remove a project. The only hard delete among entities."""
        with self.storage.lock:
            raw = self._raw()
            kept = [entry for entry in raw if not (isinstance(entry, dict) and entry.get("id") == id)]
            if len(kept) == len(raw):
                return False
            self._save(kept)
        logger.info("Permanently deleted project %s", id)
        return True


class TaskStore(EntityCollection[Task]):
    key = "tasks"
    model = Task

    def add(self, **fields: Any) -> str:
        fields.setdefault("status", TaskStatus.PENDING)
        return super().add(**fields)

    def update_actual_time(self, id: str, additional_minutes: int) -> bool:
        """Accumulate tracked minutes onto a task."""
        return self._mutate(
            id,
            lambda task: {
                "actual_time": (task.actual_time or 0) + additional_minutes,
                "updated_at": now_iso(),
            },
        )

    def by_project(self, project_id: str) -> list[Task]:
        return [t for t in self.live() if t.project_id == project_id]


class EventStore(EntityCollection[Event]):
    key = "events"
    model = Event

    def move(self, id: str, start_time: str, end_time: str) -> bool:
        return self.update(id, start_time=start_time, end_time=end_time)

    def in_range(self, start: str | datetime, end: str | datetime) -> list[Event]:
        """Live events whose start falls within [start, end]."""
        range_start = parse_timestamp(start)
        range_end = parse_timestamp(end)
        if range_start is None or range_end is None:
            raise ValueError(f"Invalid range: {start!r} .. {end!r}")

        result = []
        for event in self.live():
            event_start = parse_timestamp(event.start_time)
            if event_start is not None and range_start <= event_start <= range_end:
                result.append(event)
        return result

    def on_date(self, day: str | date) -> list[Event]:
        """Live events starting on a local calendar date."""
        target = to_date(day)
        return [e for e in self.live() if to_date(e.start_time) == target]


class PomodoroStore(EntityCollection[PomodoroSession]):
    key = "pomodoro_sessions"
    model = PomodoroSession
    newest_first = True

    def by_task(self, task_id: str) -> list[PomodoroSession]:
        return [s for s in self.live() if s.task_id == task_id]

    def clear(self) -> None:
        with self.storage.lock:
            self._save([])


class SettingsStore:
    """The single live Settings record."""

    key = "settings"

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def get(self) -> Settings:
        return Settings.from_dict(self.storage.get(self.key, {}))

    def set(self, settings: Settings) -> None:
        self.storage.set(self.key, settings.to_dict())

    def update(self, partial: dict[str, Any]) -> Settings:
        """Deep-merge *partial* into the current settings and persist."""
        with self.storage.lock:
            merged = Settings.from_dict(deep_merge(self.get().to_dict(), partial))
            self.set(merged)
        return merged

    def reset(self) -> Settings:
        defaults = Settings()
        self.set(defaults)
        logger.info("Settings reset to defaults")
        return defaults

    def complete_onboarding(self) -> Settings:
        with self.storage.lock:
            settings = replace(self.get(), onboarding_completed=True)
            self.set(settings)
        return settings


class NotificationLog:
    """Emitted notifications, newest first. Only ``read`` is ever mutated."""

    key = "notifications"

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def _load(self) -> list[Notification]:
        parsed = (_parse_record(Notification, self.key, raw) for raw in _read_array(self.storage, self.key))
        return [n for n in parsed if n is not None]

    def all(self) -> list[Notification]:
        return self._load()

    def unread(self) -> list[Notification]:
        return [n for n in self._load() if not n.read]

    def unread_count(self) -> int:
        return len(self.unread())

    def get(self, id: str) -> Notification | None:
        return next((n for n in self._load() if n.id == id), None)

    def add(self, type: NotificationType | str, message: str) -> Notification:
        notification = Notification(
            id=generate_id("ntf"),
            type=type,
            message=message,
            read=False,
            created_at=now_iso(),
        )
        with self.storage.lock:
            raw = _read_array(self.storage, self.key)
            self.storage.set(self.key, [notification.to_dict(), *raw])
        return notification

    def mark_as_read(self, id: str) -> bool:
        with self.storage.lock:
            raw = _read_array(self.storage, self.key)
            for i, entry in enumerate(raw):
                n = _parse_record(Notification, self.key, entry)
                if n is not None and n.id == id:
                    n.read = True
                    raw[i] = n.to_dict()
                    self.storage.set(self.key, raw)
                    return True
        return False

    def mark_all_as_read(self) -> int:
        """Returns how many were unread."""
        with self.storage.lock:
            raw = _read_array(self.storage, self.key)
            count = 0
            for i, entry in enumerate(raw):
                n = _parse_record(Notification, self.key, entry)
                if n is not None and not n.read:
                    n.read = True
                    raw[i] = n.to_dict()
                    count += 1
            self.storage.set(self.key, raw)
        return count

    def clear(self) -> None:
        """Physically wipe the log."""
        with self.storage.lock:
            self.storage.set(self.key, [])
        logger.info("Notification log cleared")
