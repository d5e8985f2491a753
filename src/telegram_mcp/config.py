"""
Configuration for telegram-mcp.

Settings come from three layers, highest precedence first:
    1. Explicit values: a YAML config file or keyword overrides
    2. TELEGRAM_MCP_* environment variables
    3. Built-in defaults

Environment Variables:
    TELEGRAM_MCP_DB_PATH      Path to the SQLite database
    TELEGRAM_MCP_LOG_LEVEL    debug, info, warn or error
    TELEGRAM_MCP_CACHE_TTL    Default cache TTL in milliseconds
    TELEGRAM_MCP_MAX_LOGS     Maximum log entries kept by maintenance
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from telegram_mcp.errors import ERROR_CONFIG_FILE, ConfigError
from telegram_mcp.schema import LogLevel

DEFAULT_DB_PATH = Path.home() / ".telegram-mcp" / "telegram.db"


class Settings(BaseSettings):
    """
    Runtime configuration.

    Attributes:
        db_path: SQLite database file (":memory:" for a private in-memory db)
        log_level: Minimum level persisted by the log store
        cache_ttl: TTL in ms applied to cached provider responses
        max_logs: Retention target applied by log trimming
    """

    model_config = SettingsConfigDict(
        env_prefix="TELEGRAM_MCP_",
        case_sensitive=False,
        extra="forbid",
    )

    db_path: str = Field(default=str(DEFAULT_DB_PATH), min_length=1)
    log_level: LogLevel = LogLevel.INFO
    cache_ttl: int = Field(default=3_600_000, gt=0)  # 1 hour
    max_logs: int = Field(default=10_000, gt=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept any case, and "warning" as an alias of "warn"."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "warning":
                return "warn"
        return v


def load_settings(path: Path | str | None = None, **overrides: Any) -> Settings:
    """
    Load settings from the environment and an optional YAML file.

    Args:
        path: Optional YAML file whose keys are Settings field names
        **overrides: Explicit values; None values are ignored

    Returns:
        Validated Settings

    Raises:
        ConfigError: If the file is unreadable or any value is invalid
    """
    data: dict[str, Any] = {}
    source = "env"

    if path is not None:
        source = str(path)
        try:
            with Path(path).open() as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(
                source=source,
                details=str(e),
                code=ERROR_CONFIG_FILE,
            ) from e
        if not isinstance(loaded, dict):
            raise ConfigError(source=source, details="top-level YAML value must be a mapping")
        data.update(loaded)

    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(source=source, details=str(e)) from e


def ensure_database_directory(db_path: str) -> Path | None:
    """
    Create the parent directory of a database file.

    Returns:
        The directory, or None for an in-memory database
    """
    if db_path == ":memory:":
        return None
    directory = Path(db_path).expanduser().parent
    directory.mkdir(parents=True, exist_ok=True)
    return directory
