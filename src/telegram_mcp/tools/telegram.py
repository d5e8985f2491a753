"""
Telegram tools.

- telegram_login: Log in and link the account to the Telegram user
- telegram_logout: Log out and deactivate the active account
- telegram_list_chats: List chats (cached)
- telegram_get_messages: Read a chat's newest messages (cached)
- telegram_send_message: Send a message and invalidate affected cache keys
- telegram_search_messages: Search a chat's recent messages
- telegram_unread_count: Total unread messages

Cache keys:
    chats:<type|all>:<unread_only>
    messages:<chat_id>:<limit>

Provider errors (NotAuthenticatedError, ChatNotFoundError, ProviderError)
propagate to the server, which records and reports them.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from telegram_mcp.schema import ChatType
from telegram_mcp.tools.base import Tool, ToolContext, ToolOutput

CHATS_PREFIX = "chats:"
MESSAGES_PREFIX = "messages:"


def chats_key(chat_type: ChatType | None, unread_only: bool) -> str:
    kind = chat_type.value if chat_type else "all"
    return f"{CHATS_PREFIX}{kind}:{int(unread_only)}"


def messages_key(chat_id: str, limit: int) -> str:
    return f"{MESSAGES_PREFIX}{chat_id}:{limit}"


def _dump_all(models: list[BaseModel]) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json") for m in models]


# =============================================================================
# Argument Models
# =============================================================================


class LoginArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    phone: str = Field(min_length=1, description="Phone number in international format")


class ListChatsArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    chat_type: ChatType | None = Field(default=None, description="Only chats of this type")
    unread_only: bool = Field(default=False, description="Only chats with unread messages")


class GetMessagesArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    chat_id: str = Field(min_length=1)
    limit: int = Field(default=50, ge=1, le=100)


class SendMessageArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    chat_id: str = Field(min_length=1)
    text: str = Field(min_length=1)


class SearchMessagesArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    chat_id: str = Field(min_length=1)
    query: str = Field(min_length=1)
    limit: int = Field(default=20, ge=1, le=100)


# =============================================================================
# Tools
# =============================================================================


class LoginTool(Tool):
    """
    Log in with a phone number.

    Creates the account on first login, then links it to the provider's
    current user and marks it active.
    """

    namespace = "telegram"
    action = "login"
    args_model = LoginArgs

    @property
    def description(self) -> str:
        return "Log in to Telegram with a phone number"

    async def execute(self, args: LoginArgs, context: ToolContext) -> ToolOutput:
        await context.service.login(args.phone)
        user = await context.service.get_current_user()
        if user is None:
            return ToolOutput.fail(f"Login for {args.phone} returned no user")

        accounts = context.accounts
        account = accounts.get_account_by_phone(args.phone)
        if account is None:
            account = accounts.create_account(args.phone)
        accounts.activate_session(account.id, user.id, user.username)

        account = accounts.get_account(account.id)
        return ToolOutput.ok(account.model_dump(mode="json"))


class LogoutTool(Tool):
    """Log out, deactivate the active account and drop cached chat data."""

    namespace = "telegram"
    action = "logout"

    @property
    def description(self) -> str:
        return "Log out of Telegram"

    async def execute(self, args: Any, context: ToolContext) -> ToolOutput:
        session = context.accounts.get_active_session()
        await context.service.logout()
        if session is not None:
            context.accounts.deactivate_session(session.id)
        context.cache.clear_by_prefix(CHATS_PREFIX)
        context.cache.clear_by_prefix(MESSAGES_PREFIX)
        return ToolOutput.ok({
            "logged_out": True,
            "account_id": session.id if session else None,
        })


class ListChatsTool(Tool):
    namespace = "telegram"
    action = "list_chats"
    args_model = ListChatsArgs

    @property
    def description(self) -> str:
        return "List Telegram chats, optionally by type or unread only"

    async def execute(self, args: ListChatsArgs, context: ToolContext) -> ToolOutput:
        key = chats_key(args.chat_type, args.unread_only)
        cached = context.cache.get(key)
        if cached is not None:
            return ToolOutput.ok(cached, cached=True)

        chats = await context.service.get_chats(args.chat_type, args.unread_only)
        data = _dump_all(chats)
        context.cache.set(key, data, ttl=context.settings.cache_ttl)
        return ToolOutput.ok(data, cached=False)


class GetMessagesTool(Tool):
    namespace = "telegram"
    action = "get_messages"
    args_model = GetMessagesArgs

    @property
    def description(self) -> str:
        return "Get the newest messages of a chat"

    async def execute(self, args: GetMessagesArgs, context: ToolContext) -> ToolOutput:
        key = messages_key(args.chat_id, args.limit)
        cached = context.cache.get(key)
        if cached is not None:
            return ToolOutput.ok(cached, cached=True)

        messages = await context.service.get_messages(args.chat_id, args.limit)
        data = _dump_all(messages)
        context.cache.set(key, data, ttl=context.settings.cache_ttl)
        return ToolOutput.ok(data, cached=False)


class SendMessageTool(Tool):
    """Send a message; cached chat lists and this chat's messages go stale."""

    namespace = "telegram"
    action = "send_message"
    args_model = SendMessageArgs

    @property
    def description(self) -> str:
        return "Send a text message to a chat"

    async def execute(self, args: SendMessageArgs, context: ToolContext) -> ToolOutput:
        message = await context.service.send_message(args.chat_id, args.text)
        context.cache.clear_by_prefix(CHATS_PREFIX)
        context.cache.clear_by_prefix(f"{MESSAGES_PREFIX}{args.chat_id}:")
        return ToolOutput.ok(message.model_dump(mode="json"))


class SearchMessagesTool(Tool):
    namespace = "telegram"
    action = "search_messages"
    args_model = SearchMessagesArgs

    @property
    def description(self) -> str:
        return "Search a chat's recent messages (case-insensitive)"

    async def execute(self, args: SearchMessagesArgs, context: ToolContext) -> ToolOutput:
        messages = await context.service.search_messages(args.chat_id, args.query, args.limit)
        return ToolOutput.ok(_dump_all(messages))


class UnreadCountTool(Tool):
    namespace = "telegram"
    action = "unread_count"

    @property
    def description(self) -> str:
        return "Total unread messages across all chats"

    async def execute(self, args: Any, context: ToolContext) -> ToolOutput:
        return ToolOutput.ok({"unread_count": await context.service.get_unread_count()})


def telegram_tools() -> list[Tool]:
    """Instances of every Telegram tool."""
    return [
        LoginTool(),
        LogoutTool(),
        ListChatsTool(),
        GetMessagesTool(),
        SendMessageTool(),
        SearchMessagesTool(),
        UnreadCountTool(),
    ]
