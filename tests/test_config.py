"""Tests for application config loading (defaults, YAML file, environment)."""

import pytest

from krocs import config, paths


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in config.ENV_OVERRIDES:
        monkeypatch.delenv(env_var, raising=False)


def test_defaults_without_file():
    loaded = config.load_config()
    assert loaded == config.DEFAULTS
    assert loaded is not config.DEFAULTS


def test_yaml_file_overrides_defaults(tmp_path):
    config_file = tmp_path / "krocs.yaml"
    config_file.write_text("daemon:\n  sync_interval_seconds: 60\napi:\n  port: 9000\n")

    loaded = config.load_config(config_file)

    assert config.get(loaded, "daemon.sync_interval_seconds") == 60
    assert config.get(loaded, "daemon.max_backoff_seconds") == 3600
    assert config.get(loaded, "api.port") == 9000
    assert config.get(loaded, "api.host") == "127.0.0.1"


def test_default_file_location_is_under_krocs_home(tmp_path):
    paths.config_file().write_text("logging:\n  level: DEBUG\n")
    assert paths.config_file().parent == (tmp_path / "home" / "config").resolve()
    assert config.get(config.load_config(), "logging.level") == "DEBUG"


def test_env_overrides_file(tmp_path, monkeypatch):
    config_file = tmp_path / "krocs.yaml"
    config_file.write_text("api:\n  port: 9000\n")
    monkeypatch.setenv("KROCS_API_PORT", "9100")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://planner.example")

    loaded = config.load_config(config_file)

    assert loaded["api"]["port"] == 9100
    assert loaded["api"]["cors_origins"] == ["http://localhost:3000", "https://planner.example"]


def test_invalid_env_value_is_ignored(monkeypatch, caplog):
    monkeypatch.setenv("KROCS_SYNC_INTERVAL", "often")
    loaded = config.load_config()
    assert loaded["daemon"]["sync_interval_seconds"] == 300
    assert "KROCS_SYNC_INTERVAL" in caplog.text


@pytest.mark.parametrize("content", ["daemon: [unclosed", "- just\n- a list\n"])
def test_unusable_file_falls_back_to_defaults(tmp_path, content):
    config_file = tmp_path / "krocs.yaml"
    config_file.write_text(content)
    assert config.load_config(config_file) == config.DEFAULTS


def test_get_missing_path_returns_default():
    assert config.get({"a": {"b": 1}}, "a.c", "fallback") == "fallback"
    assert config.get({"a": 1}, "a.b") is None
