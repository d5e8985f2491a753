"""
Tools module for telegram-mcp.

Tools are the operations exposed to MCP clients.

Built-in tools:
    - telegram_login, telegram_logout
    - telegram_list_chats, telegram_get_messages
    - telegram_send_message, telegram_search_messages
    - telegram_unread_count
    - accounts_list, cache_stats, logs_query

Architecture:
    - Tool: Abstract base class defining the tool interface
    - ToolRegistry: Lookup of tools by name
    - ToolContext: Services and stores passed to tools
    - ToolOutput: Standardized result format from tool execution
"""

from telegram_mcp.tools.admin import admin_tools
from telegram_mcp.tools.base import Tool, ToolContext, ToolOutput
from telegram_mcp.tools.registry import ToolRegistry
from telegram_mcp.tools.telegram import telegram_tools


def build_default_registry() -> ToolRegistry:
    """A registry holding every built-in tool."""
    return ToolRegistry([*telegram_tools(), *admin_tools()])


__all__ = [
    "Tool",
    "ToolContext",
    "ToolOutput",
    "ToolRegistry",
    "admin_tools",
    "build_default_registry",
    "telegram_tools",
]
