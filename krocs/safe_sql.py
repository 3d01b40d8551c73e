"""
SQL builders for the key-value table.

SQLite cannot bind identifiers, so table and column names are checked against
_IDENTIFIER_RE before they are formatted into a statement. Keys, values and
prefixes always travel as ``?`` parameters.
"""

# Identifiers pass _checked() before interpolation.
# ruff: noqa: S608

from __future__ import annotations

import re
from collections.abc import Sequence

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _checked(*names: str) -> str:
    """Comma-join identifiers after checking each one. Raises ValueError."""
    for name in names:
        if not _IDENTIFIER_RE.match(name):
            raise ValueError(f"Invalid SQL identifier: {name!r}")
    return ", ".join(names)


def set_user_version(version: int) -> str:
    if not isinstance(version, int) or version < 0:
        raise ValueError(f"Invalid schema version: {version!r}")
    return f"PRAGMA user_version = {version}"


def starts_with(column: str) -> str:
    """
    Literal prefix test, bound as ``(len(prefix), prefix)``.

    LIKE would treat the ``_`` in ``krocs_`` as a wildcard.
    """
    return f"substr({_checked(column)}, 1, ?) = ?"


def equals(column: str) -> str:
    return f"{_checked(column)} = ?"


def select(table: str, columns: Sequence[str], where: str | None = None, order_by: str | None = None) -> str:
    """SELECT *columns* FROM *table*; *where* comes from equals()/starts_with()."""
    sql = f"SELECT {_checked(*columns)} FROM {_checked(table)}"
    if where:
        sql += f" WHERE {where}"
    if order_by:
        sql += f" ORDER BY {_checked(order_by)}"
    return sql


def upsert(table: str, columns: Sequence[str], conflict: str) -> str:
    """INSERT that overwrites every other column when *conflict* already exists."""
    updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != conflict)
    placeholders = ", ".join("?" for _ in columns)
    return (
        f"INSERT INTO {_checked(table)} ({_checked(*columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT({_checked(conflict)}) DO UPDATE SET {updates}"
    )


def delete(table: str, where: str) -> str:
    return f"DELETE FROM {_checked(table)} WHERE {where}"
