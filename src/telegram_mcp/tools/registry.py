"""
Tool registry for telegram-mcp.

The server looks tools up here by their MCP name. There is no global
registry: each server owns one, normally built by
``telegram_mcp.tools.build_default_registry``, and tests build their own.

Usage:
    registry = ToolRegistry()
    registry.register(UnreadCountTool())
    tool = registry.get("telegram_unread_count")
"""

from collections.abc import Iterator

from telegram_mcp.errors import ToolNotFoundError
from telegram_mcp.tools.base import Tool


class ToolRegistry:
    """
    Mapping from tool names to tool instances.

    Attributes:
        _tools: Internal mapping of tool names to tool instances
    """

    def __init__(self, tools: list[Tool] | None = None) -> None:
        """Initialize a registry, optionally pre-populated."""
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """
        Register a tool, replacing any tool with the same name.

        Raises:
            ValueError: If tool is None or has an empty name
        """
        if tool is None:
            msg = "Cannot register None as a tool"
            raise ValueError(msg)

        name = tool.name
        if not name:
            msg = "Tool must have a non-empty name"
            raise ValueError(msg)

        self._tools[name] = tool

    def get(self, name: str) -> Tool:
        """
        Look up a tool by name.

        Raises:
            ToolNotFoundError: If no tool with that name is registered
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(tool=name)
        return tool

    def unregister(self, name: str) -> bool:
        """Remove a tool; True if it was registered."""
        return self._tools.pop(name, None) is not None

    def list_tools(self) -> list[str]:
        """Registered tool names in sorted order."""
        return sorted(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        """Iterate over tools in name order."""
        return iter(self._tools[name] for name in self.list_tools())
