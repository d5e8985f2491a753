"""
Unit tests for the cache store.

Tests cover:
- set/get with and without TTL
- Lazy expiry on get and proactive cleanup
- delete, clear and literal prefix clearing
- Statistics and hit/miss accounting
"""

import json

import pytest

from telegram_mcp.errors import StorageConnectionError
from telegram_mcp.store import CacheStore, Database


# =============================================================================
# Basic Operations
# =============================================================================


class TestSetGet:
    """Tests for set and get."""

    def test_get_returns_stored_value(self, cache: CacheStore) -> None:
        """Structured values round-trip through JSON."""
        cache.set("k", {"a": 1, "b": [1, 2, 3]})
        assert cache.get("k") == {"a": 1, "b": [1, 2, 3]}

    def test_get_missing_returns_none(self, cache: CacheStore) -> None:
        assert cache.get("nope") is None

    def test_set_overwrites(self, cache: CacheStore) -> None:
        """A second set replaces the first; only one entry exists."""
        cache.set("k", "first")
        cache.set("k", "second")
        assert cache.get("k") == "second"
        assert cache.stats().total_entries == 1

    def test_set_overwrite_replaces_ttl(self, cache: CacheStore, clock) -> None:
        """Overwriting without a TTL makes the entry permanent."""
        cache.set("k", 1, ttl=100)
        cache.set("k", 2)
        clock.advance(10_000)
        assert cache.get("k") == 2

    def test_stored_value_is_json_text(self, cache: CacheStore, db: Database) -> None:
        cache.set("k", [1, "two"])
        raw = db.scalar("test", "SELECT value FROM cache WHERE key = ?", ("k",))
        assert json.loads(raw) == [1, "two"]

    def test_falsy_values_are_hits(self, cache: CacheStore) -> None:
        """0, "" and [] are real values, not misses."""
        cache.set("zero", 0)
        cache.set("empty", [])
        assert cache.get("zero") == 0
        assert cache.get("empty") == []
        assert cache.stats().hit_count == 2


# =============================================================================
# Expiry
# =============================================================================


class TestExpiry:
    """Tests for TTL expiry."""

    def test_value_available_before_expiry(self, cache: CacheStore, clock) -> None:
        cache.set("k", "v", ttl=1_000)
        clock.advance(999)
        assert cache.get("k") == "v"

    def test_value_available_at_exact_expiry(self, cache: CacheStore, clock) -> None:
        """Expiry is strict: expires_at == now is still live."""
        cache.set("k", "v", ttl=1_000)
        clock.advance(1_000)
        assert cache.get("k") == "v"

    def test_expired_get_is_miss_and_deletes(self, cache: CacheStore, clock) -> None:
        cache.set("k", "v", ttl=1_000)
        clock.advance(1_001)

        assert cache.get("k") is None
        assert cache.get_entry("k") is None
        assert cache.stats().miss_count == 1

    def test_no_ttl_never_expires(self, cache: CacheStore, clock) -> None:
        cache.set("k", "v")
        clock.advance(10 * 365 * 24 * 3_600_000)
        assert cache.get("k") == "v"
        assert cache.get_entry("k").expires_at is None

    def test_get_entry_does_not_expire_or_count(self, cache: CacheStore, clock) -> None:
        cache.set("k", "v", ttl=10)
        clock.advance(20)

        entry = cache.get_entry("k")
        assert entry is not None
        assert entry.is_expired(clock.now)
        assert cache.stats().hit_count == 0
        assert cache.stats().miss_count == 0

    def test_cleanup_removes_only_expired(self, cache: CacheStore, clock) -> None:
        cache.set("short", 1, ttl=10)
        cache.set("long", 2, ttl=10_000)
        cache.set("forever", 3)
        clock.advance(100)

        assert cache.cleanup() == 1
        assert cache.get_entry("short") is None
        assert cache.get("long") == 2
        assert cache.get("forever") == 3

    def test_cleanup_nothing_expired(self, cache: CacheStore) -> None:
        cache.set("k", "v", ttl=10_000)
        assert cache.cleanup() == 0


# =============================================================================
# Deletion
# =============================================================================


class TestDeletion:
    """Tests for delete, clear and clear_by_prefix."""

    def test_delete_existing(self, cache: CacheStore) -> None:
        cache.set("k", "v")
        assert cache.delete("k") is True
        assert cache.get("k") is None

    def test_delete_missing(self, cache: CacheStore) -> None:
        assert cache.delete("k") is False

    def test_clear(self, cache: CacheStore) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert cache.stats().total_entries == 0

    def test_clear_by_prefix_scoped(self, cache: CacheStore) -> None:
        cache.set("messages:chat-1:50", [])
        cache.set("messages:chat-1:10", [])
        cache.set("messages:chat-2:50", [])
        cache.set("chats:all:0", [])

        assert cache.clear_by_prefix("messages:chat-1:") == 2
        assert cache.get_entry("messages:chat-2:50") is not None
        assert cache.get_entry("chats:all:0") is not None

    def test_clear_by_prefix_wildcards_are_literal(self, cache: CacheStore) -> None:
        """% and _ in a prefix match only themselves."""
        cache.set("a%b", 1)
        cache.set("axb", 2)
        cache.set("a_c", 3)
        cache.set("ayc", 4)

        assert cache.clear_by_prefix("a%") == 1
        assert cache.clear_by_prefix("a_") == 1
        assert cache.get("axb") == 2
        assert cache.get("ayc") == 4

    def test_clear_by_prefix_case_sensitive(self, cache: CacheStore) -> None:
        cache.set("Chats:1", 1)
        assert cache.clear_by_prefix("chats:") == 0
        assert cache.get("Chats:1") == 1

    def test_clear_by_prefix_no_match(self, cache: CacheStore) -> None:
        cache.set("k", 1)
        assert cache.clear_by_prefix("zzz") == 0


# =============================================================================
# Statistics
# =============================================================================


class TestStats:
    """Tests for cache statistics."""

    def test_empty_stats(self, cache: CacheStore) -> None:
        stats = cache.stats()
        assert stats.total_entries == 0
        assert stats.expired_entries == 0
        assert stats.size == 0

    def test_hit_miss_accounting(self, cache: CacheStore) -> None:
        cache.set("k", "v")
        cache.get("k")
        cache.get("k")
        cache.get("missing")

        stats = cache.stats()
        assert stats.hit_count == 2
        assert stats.miss_count == 1

    def test_expired_counted_until_cleanup(self, cache: CacheStore, clock) -> None:
        cache.set("a", 1, ttl=10)
        cache.set("b", 2)
        clock.advance(11)

        assert cache.stats().expired_entries == 1
        cache.cleanup()
        assert cache.stats().expired_entries == 0
        assert cache.stats().total_entries == 1

    def test_size_is_serialized_bytes(self, cache: CacheStore) -> None:
        cache.set("a", "abc")  # '"abc"' -> 5 bytes
        cache.set("b", 12)  # '12' -> 2 bytes
        assert cache.stats().size == 7

    def test_size_of_non_ascii_value(self, cache: CacheStore) -> None:
        cache.set("a", "é")
        assert cache.stats().size == len(json.dumps("é").encode())

    def test_reset_stats(self, cache: CacheStore) -> None:
        cache.get("missing")
        cache.reset_stats()
        stats = cache.stats()
        assert stats.hit_count == 0
        assert stats.miss_count == 0

    def test_counters_are_per_instance(self, db: Database, cache: CacheStore) -> None:
        cache.set("k", "v")
        cache.get("k")
        other = CacheStore(db)
        assert other.stats().hit_count == 0
        assert other.stats().total_entries == 1


class TestErrors:
    """Storage errors surface from the cache."""

    def test_malformed_json_propagates(self, cache: CacheStore, db: Database) -> None:
        db.write("test", "INSERT INTO cache (key, value, created_at) VALUES ('bad', '{', 0)")
        with pytest.raises(json.JSONDecodeError):
            cache.get("bad")

    def test_closed_database(self, cache: CacheStore, db: Database) -> None:
        db.close()
        with pytest.raises(StorageConnectionError):
            cache.get("k")
