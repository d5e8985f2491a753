"""
Storage module for telegram-mcp.

This module provides SQLite-based persistence shared by three stores, each
owning its own table:

    - CacheStore (cache): Key-value entries with TTL expiry
    - LogStore (logs): Structured, append-only tool and event logs
    - AccountRegistry (sessions): Phone-identified Telegram accounts

One Database handle is opened per process and passed to each store.
"""

from telegram_mcp.store.accounts import AccountRegistry
from telegram_mcp.store.cache import CacheStore
from telegram_mcp.store.db import Database, generate_id, now_ms
from telegram_mcp.store.logs import LogStore

__all__ = [
    "AccountRegistry",
    "CacheStore",
    "Database",
    "LogStore",
    "generate_id",
    "now_ms",
]
