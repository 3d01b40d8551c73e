"""
Key-value storage - the persistence layer every store writes through.

Each collection round-trips as one JSON value under a namespaced key in a
single SQLite table. Stores never talk to SQLite directly.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from krocs import config, db, safe_sql

logger = logging.getLogger(__name__)

_COLUMNS = ("key", "value", "updated_at")
_BY_KEY = safe_sql.equals("key")
_IN_NAMESPACE = safe_sql.starts_with("key")


class KeyValueStorage:
    """
    Namespaced JSON key-value store on SQLite.

    Keys passed in by callers are bare (``"tasks"``); the namespace prefix is
    applied here so exports and clears only touch our own keys.
    """

    def __init__(self, db_path: str | Path | None = None, prefix: str = config.STORAGE_KEY_PREFIX):
        self.db_path = str(db_path or db.get_db_path())
        self.prefix = prefix
        # Held by stores around each read-modify-write of a whole array.
        self.lock = threading.RLock()

        db.ensure_schema(self.db_path)
        logger.debug("KeyValueStorage ready, DB path: %s", self.db_path)

    @contextmanager
    def _get_conn(self):
        with db.get_connection(self.db_path) as conn:
            yield conn

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    # ==================== Core Operations ====================

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or *default* if absent or unreadable."""
        with self._get_conn() as conn:
            sql = safe_sql.select(db.KV_TABLE, ["value"], where=_BY_KEY)
            row = conn.execute(sql, [self._key(key)]).fetchone()

        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            logger.error(f"Error reading from storage: {key}: {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        """Store *value* as JSON under *key*, replacing any previous value."""
        payload = json.dumps(value)
        with self._get_conn() as conn:
            sql = safe_sql.upsert(db.KV_TABLE, _COLUMNS, conflict="key")
            conn.execute(sql, [self._key(key), payload, datetime.now(UTC).isoformat()])

    def remove(self, key: str) -> bool:
        """Delete *key*. Returns True if it existed."""
        with self._get_conn() as conn:
            result = conn.execute(safe_sql.delete(db.KV_TABLE, _BY_KEY), [self._key(key)])
            return result.rowcount > 0

    def keys(self) -> list[str]:
        """Bare keys currently stored under our namespace."""
        with self._get_conn() as conn:
            sql = safe_sql.select(db.KV_TABLE, ["key"], where=_IN_NAMESPACE, order_by="key")
            rows = conn.execute(sql, self._prefix_params()).fetchall()
        return [row["key"][len(self.prefix) :] for row in rows]

    def clear(self) -> int:
        """Delete every namespaced key. Returns the number removed."""
        with self._get_conn() as conn:
            sql = safe_sql.delete(db.KV_TABLE, _IN_NAMESPACE)
            result = conn.execute(sql, self._prefix_params())
            return result.rowcount

    def _prefix_params(self) -> list:
        return [len(self.prefix), self.prefix]

    # ==================== Export / Import ====================

    def export_data(self) -> str:
        """Serialize every namespaced key into a versioned JSON document."""
        data: dict[str, Any] = {
            "version": config.STORAGE_VERSION,
            "exported_at": datetime.now(UTC).isoformat(),
            "data": {},
        }

        with self._get_conn() as conn:
            sql = safe_sql.select(db.KV_TABLE, ["key", "value"], where=_IN_NAMESPACE)
            rows = conn.execute(sql, self._prefix_params()).fetchall()

        for row in rows:
            clean_key = row["key"][len(self.prefix) :]
            try:
                data["data"][clean_key] = json.loads(row["value"])
            except json.JSONDecodeError:
                data["data"][clean_key] = row["value"]

        return json.dumps(data, indent=2)

    def import_data(self, json_string: str) -> bool:
        """
        Load a document produced by export_data().

        Returns False if the document is malformed; nothing is written then.
        """
        try:
            document = json.loads(json_string)
        except json.JSONDecodeError as e:
            logger.error(f"Error importing data: {e}")
            return False

        if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
            logger.error("Error importing data: missing 'data' section")
            return False

        now = datetime.now(UTC).isoformat()
        rows = [[self._key(key), json.dumps(value), now] for key, value in document["data"].items()]
        try:
            with self._get_conn() as conn:
                sql = safe_sql.upsert(db.KV_TABLE, _COLUMNS, conflict="key")
                conn.executemany(sql, rows)
        except sqlite3.Error as e:
            logger.error(f"Error importing data: {e}")
            return False

        logger.info("Imported %d keys (export version %s)", len(rows), document.get("version"))
        return True
