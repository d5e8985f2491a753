"""
MCP server for telegram-mcp.

The server wires the stores, the Telegram service and the tool registry
together and exposes the tools over the Model Context Protocol.

Request Flow:
    1. MCP client calls a tool by name with JSON arguments
    2. dispatch() looks the tool up and validates the arguments
    3. The tool executes against the ToolContext
    4. The call is recorded in the log store (log_tool / log_tool_error)
       with its duration and the active session id
    5. call_tool() returns JSON text content, or raises so the SDK reports
       an error-flagged result

Lifecycle:
    start() runs maintenance (expired cache cleanup, log trimming) and marks
    the server running; starting a running server raises ServerStateError.
    stop() is idempotent. The Database is owned by the caller and is not
    closed by the server.
"""

import json
import time
from collections.abc import Callable
from typing import Any

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from telegram_mcp import __version__
from telegram_mcp.config import Settings
from telegram_mcp.errors import (
    ServerStateError,
    TelegramMCPError,
    ToolExecutionError,
    ToolNotFoundError,
)
from telegram_mcp.log import get_logger
from telegram_mcp.store import AccountRegistry, CacheStore, Database, LogStore, now_ms
from telegram_mcp.telegram import MockTelegramProvider, TelegramProvider, TelegramService
from telegram_mcp.tools import ToolContext, ToolOutput, ToolRegistry, build_default_registry

logger = get_logger(__name__)

SERVER_NAME = "telegram-mcp"

# Component name recorded for server lifecycle entries in the log store.
SELF_TOOL = "self"


class TelegramMCPServer:
    """
    Telegram MCP server.

    Usage:
        with Database(settings.db_path) as db:
            server = TelegramMCPServer(settings, db)
            await server.run_stdio()

    Attributes:
        settings: Runtime configuration
        db: Shared database handle
        cache, logs, accounts: Stores built on ``db``
        service: Telegram service over ``provider``
        registry: Tools exposed to clients
    """

    def __init__(
        self,
        settings: Settings,
        db: Database,
        provider: TelegramProvider | None = None,
        registry: ToolRegistry | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.settings = settings
        self.db = db
        self.cache = CacheStore(db, clock=clock)
        self.logs = LogStore(db, min_level=settings.log_level, clock=clock)
        self.accounts = AccountRegistry(db, clock=clock)
        self.provider = provider or MockTelegramProvider()
        self.service = TelegramService(self.provider)
        self.registry = registry if registry is not None else build_default_registry()
        self.context = ToolContext(
            service=self.service,
            cache=self.cache,
            logs=self.logs,
            accounts=self.accounts,
            settings=settings,
        )
        self._running = False

        self.server: Server = Server(SERVER_NAME)
        self._register_handlers()

    @property
    def is_running(self) -> bool:
        return self._running

    def _register_handlers(self) -> None:
        """Attach the MCP request handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(
            name: str, arguments: dict[str, Any] | None
        ) -> list[types.TextContent]:
            return await self.call_tool(name, arguments)

    # =========================================================================
    # Tools
    # =========================================================================

    def list_tools(self) -> list[types.Tool]:
        """MCP descriptors for every registered tool."""
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema,
            )
            for tool in self.registry
        ]

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> ToolOutput:
        """
        Validate, execute and record one tool call.

        Every call is written to the log store, including unknown tools and
        invalid arguments. Failures are returned as ``ToolOutput.fail``.

        Returns:
            The tool's output
        """
        args = arguments or {}
        session = self.accounts.get_active_session()
        session_id = session.id if session else None
        start = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - start) * 1000)

        try:
            tool = self.registry.get(name)
        except ToolNotFoundError as e:
            self.logs.log_tool_error(name, None, args, e, elapsed_ms(),
                                     session_id=session_id, metadata=e.to_dict())
            logger.warning("tool.not_found", tool=name)
            return ToolOutput.fail(e.message, code=e.code)

        try:
            validated = tool.validate_args(args)
            output = await tool.execute(validated, self.context)
        except TelegramMCPError as e:
            duration = elapsed_ms()
            self.logs.log_tool_error(tool.namespace, tool.action, args, e, duration,
                                     session_id=session_id, metadata=e.to_dict())
            logger.warning("tool.failed", tool=name, code=e.code, error=e.message,
                           duration_ms=duration)
            return ToolOutput.fail(e.message, code=e.code)
        except Exception as e:
            duration = elapsed_ms()
            err = ToolExecutionError(tool=name, tool_args=args, underlying_error=str(e))
            self.logs.log_tool_error(tool.namespace, tool.action, args, err, duration,
                                     session_id=session_id, metadata=err.to_dict())
            logger.exception("tool.crashed", tool=name, duration_ms=duration)
            return ToolOutput.fail(err.message, code=err.code)

        duration = elapsed_ms()
        if output.success:
            self.logs.log_tool(tool.namespace, tool.action, args, output.data, duration,
                               session_id=session_id)
        else:
            self.logs.log_tool_error(tool.namespace, tool.action, args, output.error or "",
                                     duration, session_id=session_id)
        logger.debug("tool.called", tool=name, success=output.success, duration_ms=duration)
        return output

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> list[types.TextContent]:
        """
        MCP call_tool handler body.

        Raises:
            ToolExecutionError: If the tool failed; the SDK converts it into
                an error-flagged result carrying the message
        """
        output = await self.dispatch(name, arguments)
        if not output.success:
            raise ToolExecutionError(
                tool=name,
                tool_args=arguments or {},
                underlying_error=output.error or "",
                message=output.error or f"Tool {name} failed",
            )
        text = json.dumps(output.data, indent=2, default=str)
        return [types.TextContent(type="text", text=text)]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Run maintenance and mark the server running.

        Raises:
            ServerStateError: If the server is already running
        """
        if self._running:
            raise ServerStateError(state="running", message="Server is already running")

        expired = self.cache.cleanup()
        trimmed = self.logs.trim(self.settings.max_logs)
        self._running = True

        self.logs.info(
            "Telegram MCP server started",
            tool=SELF_TOOL,
            action="start",
            arguments={
                "db_path": self.settings.db_path,
                "log_level": self.settings.log_level.value,
            },
            metadata={"expired_cache_entries": expired, "trimmed_logs": trimmed},
        )
        logger.info(
            "server.started",
            version=__version__,
            tools=len(self.registry),
            expired_cache_entries=expired,
            trimmed_logs=trimmed,
        )

    def stop(self) -> None:
        """Mark the server stopped; a no-op if it is not running."""
        if not self._running:
            return
        self._running = False
        self.logs.info("Telegram MCP server stopped", tool=SELF_TOOL, action="stop")
        logger.info("server.stopped")

    async def run_stdio(self) -> None:
        """Start, serve MCP over stdin/stdout until the client disconnects, stop."""
        self.start()
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            self.stop()
