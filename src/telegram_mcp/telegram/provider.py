"""
Telegram provider interface.

A provider is the only component that talks to Telegram. Everything above it
(TelegramService, the tools, the server) works against this interface, so a
provider can be swapped for the in-memory MockTelegramProvider in tests and
offline runs.

All network-facing calls are coroutines. ``is_authenticated`` is a plain
method because it only reports local state.
"""

from abc import ABC, abstractmethod

from telegram_mcp.schema import Chat, Message, UserInfo


class TelegramProvider(ABC):
    """
    Abstract base class for Telegram backends.

    Implementations raise ProviderError (or a subclass) for failures:
    NotAuthenticatedError when a chat call is made before login,
    ChatNotFoundError when sending to an unknown chat.
    """

    @abstractmethod
    async def login(self, phone: str) -> None:
        """Authenticate with a phone number."""
        ...

    @abstractmethod
    async def logout(self) -> None:
        """End the current session."""
        ...

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Whether a user is logged in."""
        ...

    @abstractmethod
    async def get_current_user(self) -> UserInfo | None:
        """The logged-in user, or None."""
        ...

    @abstractmethod
    async def list_chats(self) -> list[Chat]:
        """Every chat visible to the current user."""
        ...

    @abstractmethod
    async def get_messages(self, chat_id: str, limit: int) -> list[Message]:
        """
        Newest-first messages of a chat.

        Args:
            chat_id: Chat to read
            limit: Maximum number of messages

        Returns:
            Up to ``limit`` messages; an unknown chat yields an empty list
        """
        ...

    @abstractmethod
    async def send_message(self, chat_id: str, text: str) -> Message:
        """Send ``text`` to a chat and return the sent message."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} authenticated={self.is_authenticated()}>"
