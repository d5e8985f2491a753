"""
Unit tests for configuration loading.

Tests cover:
- Defaults
- Environment variables
- YAML files and precedence
- Validation failures
"""

from pathlib import Path

import pytest

from telegram_mcp.config import (
    DEFAULT_DB_PATH,
    Settings,
    ensure_database_directory,
    load_settings,
)
from telegram_mcp.errors import ERROR_CONFIG_FILE, ERROR_CONFIG_INVALID, ConfigError
from telegram_mcp.schema import LogLevel


class TestDefaults:
    def test_defaults(self) -> None:
        settings = load_settings()
        assert settings.db_path == str(DEFAULT_DB_PATH)
        assert settings.log_level == LogLevel.INFO
        assert settings.cache_ttl == 3_600_000
        assert settings.max_logs == 10_000

    def test_default_path_under_home(self) -> None:
        assert DEFAULT_DB_PATH.parts[-2:] == (".telegram-mcp", "telegram.db")


class TestEnvironment:
    def test_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_MCP_DB_PATH", "/tmp/x.db")
        monkeypatch.setenv("TELEGRAM_MCP_LOG_LEVEL", "debug")
        monkeypatch.setenv("TELEGRAM_MCP_CACHE_TTL", "1000")
        monkeypatch.setenv("TELEGRAM_MCP_MAX_LOGS", "50")

        settings = load_settings()
        assert settings.db_path == "/tmp/x.db"
        assert settings.log_level == LogLevel.DEBUG
        assert settings.cache_ttl == 1000
        assert settings.max_logs == 50

    @pytest.mark.parametrize("raw", ["WARN", "warning", " Warn "])
    def test_log_level_normalized(self, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
        monkeypatch.setenv("TELEGRAM_MCP_LOG_LEVEL", raw)
        assert load_settings().log_level == LogLevel.WARN

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_MCP_CACHE_TTL", "soon")
        with pytest.raises(ConfigError) as exc_info:
            load_settings()
        assert exc_info.value.code == ERROR_CONFIG_INVALID

    def test_unprefixed_vars_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert load_settings().log_level == LogLevel.INFO


class TestConfigFile:
    def test_yaml_file(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("db_path: /data/t.db\ncache_ttl: 5000\n")

        settings = load_settings(path)
        assert settings.db_path == "/data/t.db"
        assert settings.cache_ttl == 5000
        assert settings.max_logs == 10_000

    def test_file_beats_env(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_MCP_MAX_LOGS", "50")
        monkeypatch.setenv("TELEGRAM_MCP_CACHE_TTL", "1000")
        path = temp_dir / "config.yaml"
        path.write_text("max_logs: 7\n")

        settings = load_settings(path)
        assert settings.max_logs == 7
        assert settings.cache_ttl == 1000

    def test_overrides_beat_file(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("db_path: /from/file.db\n")
        settings = load_settings(path, db_path="/from/flag.db", max_logs=None)
        assert settings.db_path == "/from/flag.db"
        assert settings.max_logs == 10_000

    def test_empty_file(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("")
        assert load_settings(path).cache_ttl == 3_600_000

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_settings(temp_dir / "missing.yaml")
        assert exc_info.value.code == ERROR_CONFIG_FILE

    def test_malformed_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("db_path: [unclosed\n")
        with pytest.raises(ConfigError) as exc_info:
            load_settings(path)
        assert exc_info.value.code == ERROR_CONFIG_FILE

    def test_non_mapping(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_unknown_key(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("bogus: 1\n")
        with pytest.raises(ConfigError) as exc_info:
            load_settings(path)
        assert exc_info.value.source == str(path)

    @pytest.mark.parametrize("body", ["cache_ttl: 0\n", "max_logs: -1\n", "log_level: loud\n"])
    def test_invalid_values(self, temp_dir: Path, body: str) -> None:
        path = temp_dir / "config.yaml"
        path.write_text(body)
        with pytest.raises(ConfigError):
            load_settings(path)


class TestEnsureDatabaseDirectory:
    def test_creates_parent(self, temp_dir: Path) -> None:
        directory = ensure_database_directory(str(temp_dir / "x" / "y" / "t.db"))
        assert directory == temp_dir / "x" / "y"
        assert directory.is_dir()

    def test_memory(self) -> None:
        assert ensure_database_directory(":memory:") is None


def test_settings_direct_construction() -> None:
    settings = Settings(db_path=":memory:", log_level="error")
    assert settings.log_level == LogLevel.ERROR
