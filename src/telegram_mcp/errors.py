"""
Exception hierarchy for telegram-mcp.

All telegram-mcp exceptions inherit from TelegramMCPError, allowing callers
to catch every project-specific exception with a single except clause.

Exception Categories:
    - ConfigError: Invalid configuration values or files
    - StorageError: Database operation failed
    - ToolError: Tool lookup, argument validation or execution failed
    - ProviderError: The Telegram provider rejected or failed a call
    - ServerStateError: Server lifecycle misuse (e.g. starting twice)

Absence is never an error: lookups return None, False or an empty list.
Storage errors wrap the sqlite3 exception that caused them, which stays
reachable through ``__cause__``.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Config errors: 1xxx
ERROR_CONFIG_INVALID = 1001
ERROR_CONFIG_FILE = 1002

# Storage errors: 2xxx
ERROR_STORAGE_CONNECTION = 2001
ERROR_STORAGE_WRITE = 2002
ERROR_STORAGE_READ = 2003

# Tool errors: 3xxx
ERROR_TOOL_NOT_FOUND = 3001
ERROR_TOOL_INVALID_ARGS = 3002
ERROR_TOOL_EXECUTION_FAILED = 3003

# Provider errors: 4xxx
ERROR_PROVIDER_FAILED = 4001
ERROR_PROVIDER_NOT_AUTHENTICATED = 4002
ERROR_PROVIDER_CHAT_NOT_FOUND = 4003

# Server errors: 5xxx
ERROR_SERVER_STATE = 5001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class TelegramMCPError(Exception):
    """
    Base exception for all telegram-mcp errors.

    ``message`` is the plain text that reaches MCP clients and the ``error``
    column of the log store. ``str()`` adds the code and suggestion for CLI
    output.

    Attributes:
        message: Human-readable error description
        code: Numeric error code, see the ERROR_* constants
        suggestion: Optional hint shown by the CLI
        context: Structured details (tool name, chat id, db path, ...)
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        text = f"[E{self.code}] {self.message}"
        if self.suggestion:
            text += f"\nSuggestion: {self.suggestion}"
        return text

    def __repr__(self) -> str:
        return f"<{type(self).__name__} E{self.code}: {self.message!r}>"

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form, stored as log metadata for failed tool calls."""
        return {
            "error_type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(TelegramMCPError):
    """
    Raised when configuration cannot be loaded or fails validation.

    Attributes:
        source: Where the bad value came from ("env", a file path, ...)
        details: Validation details from the underlying parser
    """

    source: str = ""
    details: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration from {self.source}: {self.details}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        if not self.suggestion:
            self.suggestion = "Check TELEGRAM_MCP_* environment variables and the config file"
        self.context.update({
            "source": self.source,
            "details": self.details,
        })


# =============================================================================
# Storage Errors
# =============================================================================


@dataclass
class StorageError(TelegramMCPError):
    """
    Base class for storage/database errors.

    Attributes:
        operation: The operation that failed (e.g., "cache.set", "logs.query")
    """

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["operation"] = self.operation


@dataclass
class StorageConnectionError(StorageError):
    """Raised when the database cannot be opened, or is used after close."""

    db_path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to connect to database: {self.db_path}"
        if self.code == 0:
            self.code = ERROR_STORAGE_CONNECTION
        if not self.suggestion:
            self.suggestion = "Check that the database path is valid and writable"
        super().__post_init__()
        self.context["db_path"] = self.db_path


@dataclass
class StorageWriteError(StorageError):
    """Raised when a write operation fails (including constraint violations)."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database write failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_WRITE
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class StorageReadError(StorageError):
    """Raised when a read operation fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database read failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_READ
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


# =============================================================================
# Tool Errors
# =============================================================================


@dataclass
class ToolError(TelegramMCPError):
    """
    Base class for tool errors.

    Attributes:
        tool: Name of the tool
        tool_args: Arguments that were provided
    """

    tool: str = ""
    tool_args: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "tool": self.tool,
            "tool_args": self.tool_args,
        })


@dataclass
class ToolNotFoundError(ToolError):
    """Raised when a tool is not registered."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool not found: {self.tool}"
        if self.code == 0:
            self.code = ERROR_TOOL_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Call list_tools to see the available tool names"
        super().__post_init__()


@dataclass
class ToolInvalidArgsError(ToolError):
    """Raised when tool arguments are invalid."""

    validation_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid arguments for {self.tool}: {self.validation_error}"
        if self.code == 0:
            self.code = ERROR_TOOL_INVALID_ARGS
        super().__post_init__()
        self.context["validation_error"] = self.validation_error


@dataclass
class ToolExecutionError(ToolError):
    """Raised when a tool fails during execution."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool {self.tool} failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_TOOL_EXECUTION_FAILED
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


# =============================================================================
# Provider Errors
# =============================================================================


@dataclass
class ProviderError(TelegramMCPError):
    """
    Raised when the Telegram provider fails a call.

    Attributes:
        operation: The provider call that failed (e.g. "list_chats")
    """

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Telegram provider call failed: {self.operation}"
        if self.code == 0:
            self.code = ERROR_PROVIDER_FAILED
        self.context["operation"] = self.operation


@dataclass
class NotAuthenticatedError(ProviderError):
    """Raised when a chat operation is attempted before login."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Not authenticated"
        if self.code == 0:
            self.code = ERROR_PROVIDER_NOT_AUTHENTICATED
        if not self.suggestion:
            self.suggestion = "Log in with telegram_login first"
        super().__post_init__()


@dataclass
class ChatNotFoundError(ProviderError):
    """Raised when a chat id is unknown to the provider."""

    chat_id: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Chat not found: {self.chat_id}"
        if self.code == 0:
            self.code = ERROR_PROVIDER_CHAT_NOT_FOUND
        super().__post_init__()
        self.context["chat_id"] = self.chat_id


# =============================================================================
# Server Errors
# =============================================================================


@dataclass
class ServerStateError(TelegramMCPError):
    """Raised on server lifecycle misuse."""

    state: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid server state: {self.state}"
        if self.code == 0:
            self.code = ERROR_SERVER_STATE
        self.context["state"] = self.state
