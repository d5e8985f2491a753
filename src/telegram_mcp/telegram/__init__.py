"""
Telegram access layer.

    - TelegramProvider: Abstract backend interface
    - MockTelegramProvider: In-memory backend with fixture data
    - TelegramService: Filtering, lookup and search over a provider
"""

from telegram_mcp.telegram.mock import MockTelegramProvider
from telegram_mcp.telegram.provider import TelegramProvider
from telegram_mcp.telegram.service import TelegramService

__all__ = [
    "MockTelegramProvider",
    "TelegramProvider",
    "TelegramService",
]
