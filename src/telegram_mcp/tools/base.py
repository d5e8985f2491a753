"""
Base classes for the tool interface.

This module defines the core abstractions for MCP tools:
- Tool: Abstract base class that all tools must implement
- ToolContext: Services and stores passed to tools during execution
- ToolOutput: Standardized result format from tool execution

Design Principles:
    - Tools are stateless - all state comes from ToolContext
    - Arguments are described by a Pydantic model; its JSON schema is the
      tool's MCP inputSchema and validation happens before execution
    - Tools return ToolOutput for expected failures; provider and storage
      errors propagate and are recorded by the server
    - Tool names are "<namespace>_<action>"; the log store records the two
      parts separately
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError

from telegram_mcp.errors import ToolInvalidArgsError

if TYPE_CHECKING:
    from telegram_mcp.config import Settings
    from telegram_mcp.store import AccountRegistry, CacheStore, LogStore
    from telegram_mcp.telegram import TelegramService


@dataclass(frozen=True)
class ToolOutput:
    """
    Standardized output from tool execution.

    Attributes:
        success: Whether the tool executed successfully
        data: The output data from the tool (JSON-serializable)
        error: Error message if success is False
        metadata: Additional metadata about the execution
    """

    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any, **metadata: Any) -> "ToolOutput":
        """Create a successful output."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> "ToolOutput":
        """Create a failed output."""
        return cls(success=False, error=error, metadata=metadata)


@dataclass
class ToolContext:
    """
    Runtime context passed to tools during execution.

    Attributes:
        service: Telegram access
        cache: Response cache
        logs: Persisted log store
        accounts: Account registry
        settings: Runtime configuration (cache_ttl etc.)
    """

    service: "TelegramService"
    cache: "CacheStore"
    logs: "LogStore"
    accounts: "AccountRegistry"
    settings: "Settings"


class EmptyArgs(BaseModel):
    """Argument model for tools that take no arguments."""

    model_config = ConfigDict(extra="forbid")


class Tool(ABC):
    """
    Abstract base class for all MCP tools.

    Subclasses must implement:
    - namespace and action properties
    - execute(): Performs the tool's action

    and may override ``args_model`` and ``description``.

    Example:
        class UnreadCountTool(Tool):
            namespace = "telegram"
            action = "unread_count"

            async def execute(self, args, context):
                return ToolOutput.ok(await context.service.get_unread_count())
    """

    args_model: type[BaseModel] = EmptyArgs

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Tool group, e.g. "telegram"."""
        ...

    @property
    @abstractmethod
    def action(self) -> str:
        """Operation within the namespace, e.g. "send_message"."""
        ...

    @property
    def name(self) -> str:
        """The unique identifier for this tool."""
        return f"{self.namespace}_{self.action}"

    @property
    def description(self) -> str:
        """Human-readable description shown to MCP clients."""
        return f"Tool: {self.name}"

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the accepted arguments."""
        return self.args_model.model_json_schema()

    def validate_args(self, args: dict[str, Any]) -> BaseModel:
        """
        Validate raw arguments against ``args_model``.

        Raises:
            ToolInvalidArgsError: If the arguments do not match
        """
        try:
            return self.args_model.model_validate(args)
        except ValidationError as e:
            raise ToolInvalidArgsError(
                tool=self.name,
                tool_args=args,
                validation_error=str(e),
            ) from e

    @abstractmethod
    async def execute(self, args: Any, context: ToolContext) -> ToolOutput:
        """
        Execute the tool with validated arguments.

        Args:
            args: An instance of ``args_model``
            context: Services and stores

        Returns:
            ToolOutput indicating success or failure with data/error
        """
        ...

    def __repr__(self) -> str:
        """String representation of the tool."""
        return f"<Tool: {self.name}>"
