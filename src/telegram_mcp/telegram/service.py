"""
Telegram service: provider calls plus filtering, lookup and search.
"""

from telegram_mcp.schema import Chat, ChatType, Message, UserInfo
from telegram_mcp.telegram.provider import TelegramProvider

# How far back search_messages looks in a chat.
SEARCH_WINDOW = 100


class TelegramService:
    """
    Wraps a TelegramProvider with the queries tools need.

    Provider errors propagate unchanged.
    """

    def __init__(self, provider: TelegramProvider) -> None:
        self.provider = provider

    async def login(self, phone: str) -> None:
        await self.provider.login(phone)

    async def logout(self) -> None:
        await self.provider.logout()

    def is_authenticated(self) -> bool:
        return self.provider.is_authenticated()

    async def get_current_user(self) -> UserInfo | None:
        return await self.provider.get_current_user()

    async def get_chats(
        self,
        chat_type: ChatType | str | None = None,
        unread_only: bool = False,
    ) -> list[Chat]:
        """
        List chats, optionally narrowed.

        Args:
            chat_type: Keep only chats of this type
            unread_only: Keep only chats with unread messages
        """
        chats = await self.provider.list_chats()
        if chat_type is not None:
            wanted = ChatType(chat_type)
            chats = [chat for chat in chats if chat.type == wanted]
        if unread_only:
            chats = [chat for chat in chats if chat.unread_count > 0]
        return chats

    async def get_chat(self, chat_id: str) -> Chat | None:
        for chat in await self.provider.list_chats():
            if chat.id == chat_id:
                return chat
        return None

    async def get_messages(self, chat_id: str, limit: int = 50) -> list[Message]:
        return await self.provider.get_messages(chat_id, limit)

    async def send_message(self, chat_id: str, text: str) -> Message:
        return await self.provider.send_message(chat_id, text)

    async def search_messages(
        self,
        chat_id: str,
        query: str,
        limit: int = 20,
    ) -> list[Message]:
        """
        Case-insensitive substring search over a chat's recent messages.

        Only the newest SEARCH_WINDOW messages are searched.
        """
        needle = query.lower()
        messages = await self.provider.get_messages(chat_id, SEARCH_WINDOW)
        return [msg for msg in messages if needle in msg.text.lower()][:limit]

    async def get_unread_count(self) -> int:
        """Total unread messages across all chats."""
        return sum(chat.unread_count for chat in await self.provider.list_chats())
