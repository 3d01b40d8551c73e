"""
Notification daemon - runs the notification sync on a fixed interval.

Features:
- Interval-based scheduling
- Exponential backoff while cycles are failing
- Graceful shutdown on SIGTERM/SIGINT

Usage:
    python -m cli.main daemon              # foreground, configured interval
    python -m cli.main daemon --once       # one sync and exit
"""

import logging
import signal
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime

from krocs.context import AppContext
from krocs.notifier import NotificationEngine

logger = logging.getLogger(__name__)


@dataclass
class DaemonState:
    """Runtime state for the sync loop."""

    last_run: datetime | None = None
    last_success: datetime | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    total_runs: int = 0
    total_emitted: int = 0


class NotificationDaemon:
    def __init__(
        self,
        ctx: AppContext,
        interval_seconds: float = 300,
        max_backoff_seconds: float = 3600,
        backoff_base: int = 2,
    ):
        self.engine = NotificationEngine(ctx)
        self.interval_seconds = interval_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.backoff_base = backoff_base
        self.state = DaemonState()
        self._shutdown_event = threading.Event()

    def run_once(self) -> bool:
        """One sync. Returns False if the cycle failed; the loop keeps going either way."""
        self.state.last_run = datetime.now()
        self.state.total_runs += 1
        try:
            emitted = self.engine.sync()
        except sqlite3.Error as e:
            self._record_failure(e)
            logger.error(
                f"Notification sync failed ({self.state.consecutive_failures} in a row): {e}"
            )
            return False
        except Exception as e:
            self._record_failure(e)
            logger.exception(
                f"Notification sync crashed ({self.state.consecutive_failures} in a row): {e}"
            )
            return False

        self.state.last_success = self.state.last_run
        self.state.last_error = None
        self.state.consecutive_failures = 0
        self.state.total_emitted += len(emitted)
        return True

    def _record_failure(self, error: Exception) -> None:
        self.state.consecutive_failures += 1
        self.state.last_error = str(error)

    def next_delay(self) -> float:
        """Seconds until the next cycle: the interval, stretched while failing."""
        if self.state.consecutive_failures == 0:
            return self.interval_seconds
        backoff = self.interval_seconds * self.backoff_base ** self.state.consecutive_failures
        return min(backoff, self.max_backoff_seconds)

    def run(self, max_cycles: int | None = None) -> DaemonState:
        """Loop until stop() is called (or *max_cycles* have run)."""
        logger.info("Notification daemon started (interval %ss)", self.interval_seconds)
        cycles = 0
        while not self._shutdown_event.is_set():
            self.run_once()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            self._shutdown_event.wait(self.next_delay())

        logger.info(
            "Notification daemon stopped after %d runs (%d notifications emitted)",
            self.state.total_runs,
            self.state.total_emitted,
        )
        return self.state

    def stop(self, *_args) -> None:
        self._shutdown_event.set()

    def install_signal_handlers(self) -> None:
        """Stop cleanly on SIGTERM/SIGINT. Main thread only."""
        signal.signal(signal.SIGTERM, self.stop)
        signal.signal(signal.SIGINT, self.stop)
