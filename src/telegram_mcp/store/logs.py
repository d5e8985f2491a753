"""
Structured, append-only log store backed by the ``logs`` table.

Entries below the store's minimum level are dropped before they reach the
database. Entries are never updated; they leave the table only through the
bulk operations ``clear`` and ``trim``.

The free-text ``message`` accepted by every logging method is not persisted:
the table has no message column, only the structured context fields.
"""

import json
import sqlite3
from collections.abc import Callable
from typing import Any

from telegram_mcp.errors import TelegramMCPError
from telegram_mcp.log import get_logger
from telegram_mcp.schema import LogEntry, LogFilter, LogLevel
from telegram_mcp.store.db import Database, generate_id, now_ms

logger = get_logger(__name__)

_INSERT_SQL = """
INSERT INTO logs (
    id, timestamp, level, tool, action, arguments, result, error,
    duration, session_id, project_id, server_id, metadata
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _dumps(value: Any) -> str | None:
    """Serialize an optional structured field."""
    if value is None:
        return None
    return json.dumps(value, default=str)


def _loads(value: str | None) -> Any:
    """Deserialize an optional structured field."""
    if value is None:
        return None
    return json.loads(value)


class LogStore:
    """
    Level-gated structured log persisted to SQLite.

    Usage:
        logs = LogStore(db, min_level=LogLevel.WARN)
        logs.info("ignored")                # below min_level, not written
        logs.log_tool_error("telegram", "send_message", {"chat_id": "x"},
                            err, duration_ms=12)
        logs.query(LogFilter(level="error", limit=10))

    Attributes:
        db: Shared database handle
        min_level: Entries below this level are dropped
        clock: Returns the current time in ms
    """

    def __init__(
        self,
        db: Database,
        min_level: LogLevel | str = LogLevel.INFO,
        server_id: str | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.db = db
        self.min_level = LogLevel(min_level)
        self.clock = clock
        self._server_id = server_id or generate_id()

    @property
    def server_id(self) -> str:
        """Identifier stamped on entries that do not supply their own."""
        return self._server_id

    # =========================================================================
    # Writing
    # =========================================================================

    def debug(self, message: str, **context: Any) -> None:
        """Log at debug level."""
        self.log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        """Log at info level."""
        self.log(LogLevel.INFO, message, **context)

    def warn(self, message: str, **context: Any) -> None:
        """Log at warn level."""
        self.log(LogLevel.WARN, message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log at error level."""
        self.log(LogLevel.ERROR, message, **context)

    def log(
        self,
        level: LogLevel | str,
        message: str,
        *,
        tool: str | None = None,
        action: str | None = None,
        arguments: dict[str, Any] | None = None,
        result: Any = None,
        error: str | None = None,
        duration: int | None = None,
        session_id: str | None = None,
        project_id: str | None = None,
        server_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> LogEntry | None:
        """
        Persist one entry unless ``level`` is below ``min_level``.

        Args:
            level: Entry level
            message: Accepted for call-site readability; not stored

        Returns:
            The stored entry, or None if it was filtered out
        """
        level = LogLevel(level)
        if level.priority < self.min_level.priority:
            return None

        entry = LogEntry(
            id=generate_id(),
            timestamp=self.clock(),
            level=level,
            tool=tool,
            action=action,
            arguments=arguments,
            result=result,
            error=error,
            duration=duration,
            session_id=session_id,
            project_id=project_id,
            server_id=server_id or self._server_id,
            metadata=metadata,
        )

        self.db.write(
            "logs.insert",
            _INSERT_SQL,
            (
                entry.id,
                entry.timestamp,
                entry.level.value,
                entry.tool,
                entry.action,
                _dumps(entry.arguments),
                _dumps(entry.result),
                entry.error,
                entry.duration,
                entry.session_id,
                entry.project_id,
                entry.server_id,
                _dumps(entry.metadata),
            ),
        )
        return entry

    def log_tool(
        self,
        tool: str,
        action: str | None,
        args: dict[str, Any],
        result: Any,
        duration_ms: int,
        **context: Any,
    ) -> LogEntry | None:
        """Record a successful tool execution at info level."""
        return self.log(
            LogLevel.INFO,
            f"Tool executed: {tool}.{action}",
            **context,
            tool=tool,
            action=action,
            arguments=args,
            result=result,
            duration=duration_ms,
        )

    def log_tool_error(
        self,
        tool: str,
        action: str | None,
        args: dict[str, Any],
        error: BaseException | str,
        duration_ms: int,
        **context: Any,
    ) -> LogEntry | None:
        """
        Record a failed tool execution at error level.

        Project exceptions are stored by their ``message``; anything else by
        ``str(error)``.
        """
        if isinstance(error, TelegramMCPError):
            error = error.message
        return self.log(
            LogLevel.ERROR,
            f"Tool error: {tool}.{action}",
            **context,
            tool=tool,
            action=action,
            arguments=args,
            error=str(error),
            duration=duration_ms,
        )

    # =========================================================================
    # Reading
    # =========================================================================

    def query(self, log_filter: LogFilter | None = None) -> list[LogEntry]:
        """
        Return entries matching every set predicate, newest first.

        Entries with equal timestamps are returned newest-inserted first.
        """
        log_filter = log_filter or LogFilter()
        where, params = log_filter.where_clause()
        rows = self.db.read_all(
            "logs.query",
            f"""
            SELECT * FROM logs
            {where}
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ? OFFSET ?
            """,
            (*params, log_filter.limit, log_filter.offset),
        )
        return [self._row_to_entry(row) for row in rows]

    def count(self, log_filter: LogFilter | None = None) -> int:
        """Count entries matching the filter; pagination is ignored."""
        log_filter = log_filter or LogFilter()
        where, params = log_filter.where_clause()
        return self.db.scalar(
            "logs.count",
            f"SELECT COUNT(*) FROM logs {where}",
            params,
        )

    # =========================================================================
    # Retention
    # =========================================================================

    def trim(self, max_entries: int) -> int:
        """
        Keep only the ``max_entries`` newest entries.

        Runs in a single transaction. ``max_entries == 0`` deletes everything.

        Returns:
            Number of entries deleted

        Raises:
            ValueError: If max_entries is negative
        """
        if max_entries < 0:
            msg = f"max_entries must be >= 0, got {max_entries}"
            raise ValueError(msg)

        with self.db.transaction():
            removed = self.db.write(
                "logs.trim",
                """
                DELETE FROM logs
                WHERE id NOT IN (
                    SELECT id FROM logs
                    ORDER BY timestamp DESC, rowid DESC
                    LIMIT ?
                )
                """,
                (max_entries,),
                commit=False,
            )
        logger.debug("logs.trim", max_entries=max_entries, removed=removed)
        return removed

    def clear(self) -> None:
        """Delete every entry."""
        self.db.write("logs.clear", "DELETE FROM logs")

    def _row_to_entry(self, row: sqlite3.Row) -> LogEntry:
        """Convert a logs row into a LogEntry."""
        return LogEntry(
            id=row["id"],
            timestamp=row["timestamp"],
            level=row["level"],
            tool=row["tool"],
            action=row["action"],
            arguments=_loads(row["arguments"]),
            result=_loads(row["result"]),
            error=row["error"],
            duration=row["duration"],
            session_id=row["session_id"],
            project_id=row["project_id"],
            server_id=row["server_id"],
            metadata=_loads(row["metadata"]),
        )
