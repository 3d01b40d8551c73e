"""
Centralized database access.

Single source of truth for:
- DB path resolution
- Connection factory
- Schema creation and versioning

ALL code must use this module for DB access. No direct sqlite3.connect() elsewhere.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from krocs import paths, safe_sql

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

KV_TABLE = "kv_store"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {KV_TABLE} (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """
    Get the canonical DB path.

    Resolution order:
    1. KROCS_DB env var (explicit override)
    2. ~/.krocs/data/krocs.db (default via paths.db_path())
    """
    return paths.db_path()


# ============================================================
# CONNECTION FACTORY
# ============================================================


@contextmanager
def get_connection(db_path: str | Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Commits on clean exit, rolls back if the block raises.

    Usage:
        with get_connection(path) as conn:
            conn.execute(...)
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# ============================================================
# SCHEMA
# ============================================================


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    cursor = conn.execute("PRAGMA user_version")
    return cursor.fetchone()[0]


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def ensure_schema(db_path: str | Path | None = None) -> dict:
    """
    Create the schema if missing and stamp PRAGMA user_version.
    Safe to call multiple times.
    """
    with get_connection(db_path) as conn:
        version_before = get_schema_version(conn)
        created = not table_exists(conn, KV_TABLE)
        conn.executescript(SCHEMA)
        if version_before < SCHEMA_VERSION:
            conn.execute(safe_sql.set_user_version(SCHEMA_VERSION))

    if created:
        logger.info("Created %s table (schema v%s)", KV_TABLE, SCHEMA_VERSION)
    return {
        "previous_version": version_before,
        "schema_version": max(version_before, SCHEMA_VERSION),
        "tables_created": [KV_TABLE] if created else [],
    }
