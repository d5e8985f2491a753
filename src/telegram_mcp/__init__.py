"""
telegram-mcp - Model Context Protocol server exposing Telegram to AI assistants.

It provides:
- Telegram tools (chats, messages, search, send) behind a swappable provider
- A TTL cache for provider responses
- Structured, queryable tool-call logs
- Phone-identified account and session tracking

All state lives in one local SQLite database.

Example usage:
    $ telegram-mcp serve
    $ telegram-mcp logs --level error
    $ telegram-mcp cache-stats
"""

__version__ = "0.1.0"
__author__ = "telegram-mcp Contributors"

__all__ = [
    "__version__",
    "__author__",
]
