"""
Pytest configuration and fixtures for telegram-mcp tests.

This module provides shared fixtures used across unit and integration tests.
Stores are built on a fresh file database per test and share a FakeClock so
TTL and ordering behavior can be tested without sleeping.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from telegram_mcp.config import Settings
from telegram_mcp.store import AccountRegistry, CacheStore, Database, LogStore
from telegram_mcp.telegram import MockTelegramProvider, TelegramService

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Path of a not-yet-created database."""
    return temp_dir / "telegram.db"


@pytest.fixture
def db(db_path: Path) -> Generator[Database, None, None]:
    """An open database, closed after the test."""
    database = Database(db_path)
    yield database
    database.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(db: Database, clock: FakeClock) -> CacheStore:
    return CacheStore(db, clock=clock)


@pytest.fixture
def logs(db: Database, clock: FakeClock) -> LogStore:
    return LogStore(db, min_level="debug", server_id="test-server", clock=clock)


@pytest.fixture
def accounts(db: Database, clock: FakeClock) -> AccountRegistry:
    return AccountRegistry(db, clock=clock)


@pytest.fixture
def provider() -> MockTelegramProvider:
    """Mock provider with no artificial latency."""
    return MockTelegramProvider(delay_ms=0)


@pytest.fixture
def service(provider: MockTelegramProvider) -> TelegramService:
    return TelegramService(provider)


@pytest.fixture
def settings(db_path: Path) -> Settings:
    """Settings pointing at the test database, isolated from the environment."""
    return Settings(db_path=str(db_path), log_level="debug", cache_ttl=60_000, max_logs=100)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep TELEGRAM_MCP_* variables from the host out of tests."""
    for name in ("DB_PATH", "LOG_LEVEL", "CACHE_TTL", "MAX_LOGS"):
        monkeypatch.delenv(f"TELEGRAM_MCP_{name}", raising=False)
