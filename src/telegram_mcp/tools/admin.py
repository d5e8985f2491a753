"""
Introspection tools over local state: accounts, cache and logs.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from telegram_mcp.schema import LogFilter
from telegram_mcp.tools.base import Tool, ToolContext, ToolOutput


class AccountsListArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    active_only: bool = Field(default=False, description="Only active accounts")


class LogsQueryArgs(BaseModel):
    """Same predicates as LogFilter, with a capped page size."""

    model_config = ConfigDict(extra="forbid")

    level: str | None = Field(default=None, description="debug, info, warn or error")
    tool: str | None = None
    session_id: str | None = None
    start_date: int | None = Field(default=None, description="Inclusive lower bound, ms")
    end_date: int | None = Field(default=None, description="Inclusive upper bound, ms")
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


class AccountsListTool(Tool):
    namespace = "accounts"
    action = "list"
    args_model = AccountsListArgs

    @property
    def description(self) -> str:
        return "List known Telegram accounts and their status"

    async def execute(self, args: AccountsListArgs, context: ToolContext) -> ToolOutput:
        if args.active_only:
            accounts = context.accounts.get_active_accounts()
        else:
            accounts = context.accounts.get_all_accounts()
        return ToolOutput.ok([a.model_dump(mode="json") for a in accounts])


class CacheStatsTool(Tool):
    namespace = "cache"
    action = "stats"

    @property
    def description(self) -> str:
        return "Cache entry counts, size and hit/miss counters"

    async def execute(self, args: Any, context: ToolContext) -> ToolOutput:
        return ToolOutput.ok(context.cache.stats().model_dump())


class LogsQueryTool(Tool):
    namespace = "logs"
    action = "query"
    args_model = LogsQueryArgs

    @property
    def description(self) -> str:
        return "Query persisted tool-call logs, newest first"

    async def execute(self, args: LogsQueryArgs, context: ToolContext) -> ToolOutput:
        log_filter = LogFilter(**args.model_dump())
        entries = context.logs.query(log_filter)
        return ToolOutput.ok(
            [e.model_dump(mode="json") for e in entries],
            total=context.logs.count(log_filter),
        )


def admin_tools() -> list[Tool]:
    """Instances of every introspection tool."""
    return [AccountsListTool(), CacheStatsTool(), LogsQueryTool()]
