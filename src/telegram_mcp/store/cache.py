"""
Key-value cache backed by the ``cache`` table.

Values are stored as JSON text. An entry may carry an absolute expiry; there
is no size limit and no eviction policy other than TTL.

Expired entries disappear in two independent ways:
    - Lazily: ``get`` on an expired key deletes it and reports a miss
    - Proactively: ``cleanup`` deletes every expired row

The store never schedules ``cleanup`` itself; callers run it.
"""

import json
from collections.abc import Callable
from typing import Any

from telegram_mcp.log import get_logger
from telegram_mcp.schema import CacheEntry, CacheStats
from telegram_mcp.store.db import Database, now_ms

logger = get_logger(__name__)


class CacheStore:
    """
    SQLite-backed cache with TTL expiry and hit/miss accounting.

    Hit and miss counters are local to this instance and reset only by
    ``reset_stats``; everything else in ``stats`` is read from storage.

    Attributes:
        db: Shared database handle
        clock: Returns the current time in ms
    """

    def __init__(self, db: Database, clock: Callable[[], int] = now_ms) -> None:
        self.db = db
        self.clock = clock
        self._hit_count = 0
        self._miss_count = 0

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Store ``value`` under ``key``, replacing any existing entry.

        Args:
            key: Cache key
            value: Any JSON-serializable value
            ttl: Time to live in ms; None means the entry never expires
        """
        now = self.clock()
        expires_at = now + ttl if ttl is not None else None
        self.db.write(
            "cache.set",
            """
            INSERT OR REPLACE INTO cache (key, value, expires_at, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (key, json.dumps(value), expires_at, now),
        )

    def get(self, key: str) -> Any | None:
        """
        Return the value stored under ``key``, or None on a miss.

        An expired entry counts as a miss and is deleted.

        Raises:
            json.JSONDecodeError: If the stored value is not valid JSON
        """
        entry = self.get_entry(key)
        if entry is None:
            self._miss_count += 1
            return None

        if entry.is_expired(self.clock()):
            self.delete(key)
            self._miss_count += 1
            return None

        self._hit_count += 1
        return entry.value

    def get_entry(self, key: str) -> CacheEntry | None:
        """
        Return the raw entry for ``key``, expired or not.

        Does not touch hit/miss counters and never deletes.
        """
        row = self.db.read_one(
            "cache.get_entry",
            "SELECT key, value, expires_at, created_at FROM cache WHERE key = ?",
            (key,),
        )
        if row is None:
            return None
        return CacheEntry(
            key=row["key"],
            value=json.loads(row["value"]),
            expires_at=row["expires_at"],
            created_at=row["created_at"],
        )

    def delete(self, key: str) -> bool:
        """Delete ``key``; True if an entry existed."""
        changed = self.db.write(
            "cache.delete",
            "DELETE FROM cache WHERE key = ?",
            (key,),
        )
        return changed > 0

    def clear(self) -> None:
        """Delete every entry."""
        self.db.write("cache.clear", "DELETE FROM cache")

    def clear_by_prefix(self, prefix: str) -> int:
        """
        Delete every entry whose key starts with ``prefix``.

        The prefix is matched literally and case-sensitively; no character
        has pattern meaning.

        Returns:
            Number of entries deleted
        """
        removed = self.db.write(
            "cache.clear_by_prefix",
            "DELETE FROM cache WHERE substr(key, 1, ?) = ?",
            (len(prefix), prefix),
        )
        logger.debug("cache.clear_by_prefix", prefix=prefix, removed=removed)
        return removed

    def stats(self) -> CacheStats:
        """Return current cache statistics."""
        row = self.db.read_one(
            "cache.stats",
            """
            SELECT
                COUNT(*) AS total,
                COALESCE(SUM(expires_at IS NOT NULL AND expires_at < ?), 0) AS expired,
                COALESCE(SUM(length(CAST(value AS BLOB))), 0) AS size
            FROM cache
            """,
            (self.clock(),),
        )
        return CacheStats(
            total_entries=row["total"],
            expired_entries=row["expired"],
            hit_count=self._hit_count,
            miss_count=self._miss_count,
            size=row["size"],
        )

    def cleanup(self) -> int:
        """
        Delete every expired entry.

        Returns:
            Number of entries deleted
        """
        removed = self.db.write(
            "cache.cleanup",
            "DELETE FROM cache WHERE expires_at IS NOT NULL AND expires_at < ?",
            (self.clock(),),
        )
        logger.debug("cache.cleanup", removed=removed)
        return removed

    def reset_stats(self) -> None:
        """Zero the hit and miss counters."""
        self._hit_count = 0
        self._miss_count = 0
