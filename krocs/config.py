"""
Centralized application configuration.

Planning settings (available time, buffers, notification rules) live in the
Settings Store. This module only covers how the application itself runs.

Resolution order for every key:
1. DEFAULTS below
2. ~/.krocs/config/krocs.yaml (optional)
3. Environment variables (see ENV_OVERRIDES)
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from krocs import paths

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = "krocs_"
"""Namespace applied to every key written to the key-value store."""

STORAGE_VERSION = "1.0.0"
"""Version stamped into data exports."""

DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "json": None,  # None = auto-detect (JSON when stderr is not a TTY)
    },
    "daemon": {
        "sync_interval_seconds": 300,
        "max_backoff_seconds": 3600,
    },
    "api": {
        "host": "127.0.0.1",
        "port": 8420,
        "cors_origins": ["*"],
    },
}

# env var -> (section, key, caster)
ENV_OVERRIDES: dict[str, tuple[str, str, Any]] = {
    "KROCS_LOG_LEVEL": ("logging", "level", str),
    "KROCS_SYNC_INTERVAL": ("daemon", "sync_interval_seconds", int),
    "KROCS_API_HOST": ("api", "host", str),
    "KROCS_API_PORT": ("api", "port", int),
    "CORS_ORIGINS": ("api", "cors_origins", lambda v: [o.strip() for o in v.split(",")]),
}


def _merge(base: dict, overlay: dict) -> dict:
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Path | None = None) -> dict:
    """Load application config: defaults, then YAML file, then env."""
    config = copy.deepcopy(DEFAULTS)

    config_path = path or paths.config_file()
    if config_path.exists():
        try:
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(f"Could not load config file {config_path}: {e}")
            file_config = {}
        if isinstance(file_config, dict):
            _merge(config, file_config)
        else:
            logger.warning(f"Ignoring config file {config_path}: top level must be a mapping")

    for env_var, (section, key, cast) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        try:
            config[section][key] = cast(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid {env_var}={raw!r}")

    return config


def get(config: dict, path: str, default: Any = None) -> Any:
    """
    Get a config value by dot-separated path.

    Example: get(config, "daemon.sync_interval_seconds")
    """
    value: Any = config
    for part in path.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return default
    return value
