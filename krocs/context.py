"""
AppContext - explicit handle on every store.

Passed into the engine, the API and the CLI instead of process-wide
singletons, so each test (or each database) gets an isolated set of stores.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from krocs.storage import KeyValueStorage
from krocs.stores import (
    EventStore,
    NotificationLog,
    PomodoroStore,
    ProjectStore,
    SettingsStore,
    TaskStore,
)

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    storage: KeyValueStorage
    projects: ProjectStore
    tasks: TaskStore
    events: EventStore
    pomodoro: PomodoroStore
    settings: SettingsStore
    notifications: NotificationLog
    # Held for a whole notification sync: snapshot, every rule, every append.
    sync_lock: threading.Lock = field(default_factory=threading.Lock)


def open_context(db_path: str | Path | None = None) -> AppContext:
    """Open (creating if needed) the database and wire up every store."""
    storage = KeyValueStorage(db_path)
    logger.info("Opened planner data at %s", storage.db_path)
    return AppContext(
        storage=storage,
        projects=ProjectStore(storage),
        tasks=TaskStore(storage),
        events=EventStore(storage),
        pomodoro=PomodoroStore(storage),
        settings=SettingsStore(storage),
        notifications=NotificationLog(storage),
    )
