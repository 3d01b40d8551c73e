"""
Filesystem locations.

Everything user-writable lives under one app home so a test (or a second
profile) can be isolated by pointing KROCS_HOME somewhere else.

    <home>/config/krocs.yaml   application config (optional)
    <home>/data/krocs.db       planner database, unless KROCS_DB is set
"""

from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "KROCS_HOME"
APP_ENV_DB = "KROCS_DB"


def _from_env(name: str) -> Path | None:
    value = os.environ.get(name)
    return Path(value).expanduser().resolve() if value else None


def _ensure(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def app_home() -> Path:
    return _from_env(APP_ENV_HOME) or (Path.home() / ".krocs").resolve()


def config_dir() -> Path:
    return _ensure(app_home() / "config")


def data_dir() -> Path:
    return _ensure(app_home() / "data")


def db_path() -> Path:
    """KROCS_DB if set, else <home>/data/krocs.db."""
    return _from_env(APP_ENV_DB) or data_dir() / "krocs.db"


def config_file() -> Path:
    """Optional YAML with application (not planning) settings."""
    return config_dir() / "krocs.yaml"
