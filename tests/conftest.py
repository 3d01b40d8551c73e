"""
Test configuration - ensures repo root is in sys.path + determinism guards.

Every test runs with KROCS_HOME pointed at a temp directory, and
sqlite3.connect refuses the live user database outright.
"""

import sqlite3
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import krocs.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from krocs.context import open_context  # noqa: E402

# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".krocs" / "data" / "krocs.db"

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    db_str = str(database)
    if db_str != ":memory:" and Path(db_str).resolve() == HOME_DB_ABSOLUTE.resolve():
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
            "Tests must use the ctx fixture (temp database)."
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def guard_live_db_access(monkeypatch, tmp_path):
    """Isolate app home and guard all tests against live DB access."""
    monkeypatch.setenv("KROCS_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("KROCS_DB", raising=False)
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)


# =============================================================================
# PLANNER FIXTURES
# =============================================================================


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "planner.db"


@pytest.fixture
def ctx(db_path):
    """Fresh AppContext on a temp database."""
    return open_context(db_path)


@pytest.fixture
def now():
    """Monday 2026-02-16 10:00 local time."""
    return datetime(2026, 2, 16, 10, 0).astimezone()
