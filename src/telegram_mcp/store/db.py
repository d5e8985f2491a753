"""
SQLite storage engine for telegram-mcp.

One Database instance owns one sqlite3 connection. It is opened once at
process start, passed by reference into each store, and closed at shutdown:

    with Database(settings.db_path) as db:
        cache = CacheStore(db)
        logs = LogStore(db, min_level=settings.log_level)
        accounts = AccountRegistry(db)

Tables:
    - cache: Key-value entries with optional absolute expiry
    - logs: Structured, append-only log records
    - sessions: One row per phone-identified Telegram account
    - config, stats: Reserved, unused by current logic

Every sqlite3 failure is re-raised as a StorageError subclass chained to the
original exception. File databases use WAL journaling so readers proceed
while a writer holds the lock.
"""

import sqlite3
import time
import uuid
from collections.abc import Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Generator

from telegram_mcp.errors import StorageConnectionError, StorageReadError, StorageWriteError
from telegram_mcp.log import get_logger

logger = get_logger(__name__)

# Schema version for migrations
SCHEMA_VERSION = 1

MEMORY_PATH = ":memory:"

# SQL for creating tables
CREATE_TABLES_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);

-- Key-value cache with TTL
CREATE TABLE IF NOT EXISTS cache (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    expires_at INTEGER,
    created_at INTEGER NOT NULL
);

-- Structured operation logs
CREATE TABLE IF NOT EXISTS logs (
    id TEXT PRIMARY KEY,
    timestamp INTEGER NOT NULL,
    level TEXT NOT NULL,
    tool TEXT,
    action TEXT,
    arguments TEXT,
    result TEXT,
    error TEXT,
    duration INTEGER,
    session_id TEXT,
    project_id TEXT,
    server_id TEXT,
    metadata TEXT
);

-- Telegram account sessions
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    phone TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL DEFAULT '',
    username TEXT,
    created_at INTEGER NOT NULL,
    last_active_at INTEGER NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 0
);

-- Application configuration (reserved)
CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);

-- Metrics (reserved)
CREATE TABLE IF NOT EXISTS stats (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    metric_name TEXT NOT NULL,
    metric_value REAL NOT NULL,
    timestamp INTEGER NOT NULL,
    tags TEXT
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS cache_expires_idx ON cache(expires_at);
CREATE INDEX IF NOT EXISTS logs_timestamp_idx ON logs(timestamp);
CREATE INDEX IF NOT EXISTS logs_level_idx ON logs(level);
CREATE INDEX IF NOT EXISTS logs_session_idx ON logs(session_id);
CREATE INDEX IF NOT EXISTS logs_tool_idx ON logs(tool);
CREATE INDEX IF NOT EXISTS sessions_phone_idx ON sessions(phone);
CREATE INDEX IF NOT EXISTS sessions_active_idx ON sessions(is_active);
CREATE INDEX IF NOT EXISTS stats_metric_idx ON stats(metric_name);
CREATE INDEX IF NOT EXISTS stats_timestamp_idx ON stats(timestamp);
"""


def generate_id() -> str:
    """Generate a globally unique ID for log entries and accounts."""
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def now_iso() -> str:
    """Get current UTC time in ISO format."""
    return datetime.now(UTC).isoformat()


class Database:
    """
    SQLite database handle shared by the cache, log and account stores.

    Usage:
        db = Database("telegram.db")
        ...
        db.close()

    Or use as context manager:
        with Database("telegram.db") as db:
            ...

    Operations on a closed Database raise StorageConnectionError.
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Open the database and create the schema if needed.

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
                     Missing parent directories are created.
        """
        self.db_path = str(db_path)
        if self.db_path != MEMORY_PATH:
            self.db_path = str(Path(self.db_path).expanduser())
        self._conn: sqlite3.Connection | None = None
        self._connect()
        self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            if self.db_path != MEMORY_PATH:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            if self.db_path != MEMORY_PATH:
                self._conn.execute("PRAGMA journal_mode = WAL")
        except (sqlite3.Error, OSError) as e:
            raise StorageConnectionError(
                db_path=self.db_path,
                operation="connect",
                message=f"Failed to connect to database: {e}",
            ) from e
        logger.debug("database.opened", db_path=self.db_path)

    def _init_schema(self) -> None:
        """Initialize database schema if needed."""
        try:
            cursor = self.conn.executescript(CREATE_TABLES_SQL)
            cursor.close()

            cursor = self.conn.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            row = cursor.fetchone()
            if row is None:
                self.conn.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (SCHEMA_VERSION, now_iso()),
                )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="init_schema",
                underlying_error=str(e),
            ) from e

    @property
    def conn(self) -> sqlite3.Connection:
        """The open connection."""
        if self._conn is None:
            raise StorageConnectionError(
                db_path=self.db_path,
                operation="use",
                message=f"Database is closed: {self.db_path}",
            )
        return self._conn

    @property
    def is_open(self) -> bool:
        """Whether the connection is still open."""
        return self._conn is not None

    def schema_version(self) -> int:
        """Return the applied schema version."""
        row = self.read_one(
            "schema_version",
            "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1",
        )
        return row["version"] if row else 0

    # =========================================================================
    # Statement helpers
    # =========================================================================

    def write(
        self,
        operation: str,
        sql: str,
        params: Sequence[Any] = (),
        commit: bool = True,
    ) -> int:
        """
        Execute a write statement.

        Args:
            operation: Name reported in errors (e.g. "cache.set")
            sql: Parameterized statement
            params: Statement parameters
            commit: Commit immediately; pass False inside transaction()

        Returns:
            Number of rows changed
        """
        try:
            cursor = self.conn.execute(sql, params)
            if commit:
                self.conn.commit()
            return cursor.rowcount
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation=operation,
                underlying_error=str(e),
            ) from e

    def read_all(
        self,
        operation: str,
        sql: str,
        params: Sequence[Any] = (),
    ) -> list[sqlite3.Row]:
        """Execute a query and return every row."""
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageReadError(
                operation=operation,
                underlying_error=str(e),
            ) from e

    def read_one(
        self,
        operation: str,
        sql: str,
        params: Sequence[Any] = (),
    ) -> sqlite3.Row | None:
        """Execute a query and return the first row, or None."""
        try:
            return self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StorageReadError(
                operation=operation,
                underlying_error=str(e),
            ) from e

    def scalar(
        self,
        operation: str,
        sql: str,
        params: Sequence[Any] = (),
    ) -> Any:
        """Execute a query and return the first column of the first row."""
        row = self.read_one(operation, sql, params)
        return row[0] if row is not None else None

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Context manager for database transactions."""
        conn = self.conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            logger.debug("database.closed", db_path=self.db_path)

    def __enter__(self) -> "Database":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.close()
