"""
In-memory Telegram provider for tests and offline use.

The fixture holds three users and three chats (one private, one group, one
channel), each with a short newest-first message history. Every async call
waits ``delay_ms`` to mimic network latency, then fails with ProviderError
when error simulation is enabled.
"""

import asyncio
import itertools

from telegram_mcp.errors import ChatNotFoundError, NotAuthenticatedError, ProviderError
from telegram_mcp.schema import Chat, ChatType, Message, User, UserInfo
from telegram_mcp.store.db import now_ms
from telegram_mcp.telegram.provider import TelegramProvider

CURRENT_USER_ID = "current-user"

_HOUR_MS = 3_600_000
_DAY_MS = 24 * _HOUR_MS


def _fixture_users() -> dict[str, User]:
    return {
        "user-1": User(id="user-1", username="john_doe", first_name="John", last_name="Doe"),
        "user-2": User(id="user-2", username="jane_smith", first_name="Jane", last_name="Smith"),
        "bot-1": User(
            id="bot-1", username="helper_bot", first_name="Helper", last_name="Bot", is_bot=True
        ),
    }


def _fixture_messages(users: dict[str, User], now: int) -> dict[str, list[Message]]:
    def msg(
        message_id: str, chat_id: str, sender: str, text: str, age: int, is_read: bool
    ) -> Message:
        return Message(
            id=message_id,
            chat_id=chat_id,
            sender=users[sender],
            text=text,
            timestamp=now - age,
            is_read=is_read,
        )

    return {
        "chat-1": [
            msg("msg-1", "chat-1", "user-1", "Hey, how are you?", _HOUR_MS, False),
            msg("msg-4", "chat-1", "user-1", "Did you see the new update?", 2 * _HOUR_MS, True),
        ],
        "chat-2": [
            msg("msg-2", "chat-2", "user-2", "Meeting at 3pm today", 2 * _HOUR_MS, False),
            msg("msg-5", "chat-2", "user-1", "Got it, thanks!", 3 * _HOUR_MS, True),
        ],
        "chat-3": [
            msg("msg-3", "chat-3", "bot-1", "New Python release available!", _DAY_MS, True),
        ],
    }


class MockTelegramProvider(TelegramProvider):
    """
    Deterministic fake Telegram backend.

    Usage:
        provider = MockTelegramProvider(delay_ms=0)
        await provider.login("+1234567890")
        chats = await provider.list_chats()

    Attributes:
        simulate_error: When True every async call raises ProviderError
        delay_ms: Artificial latency applied to every async call
    """

    def __init__(self, simulate_error: bool = False, delay_ms: int = 50) -> None:
        self.simulate_error = simulate_error
        self.delay_ms = delay_ms
        self._authenticated = False
        self._current_user: UserInfo | None = None
        self._chats: dict[str, Chat] = {}
        self._messages: dict[str, list[Message]] = {}
        self._sent_ids = itertools.count(1)
        self._load_fixture()

    def set_simulate_error(self, value: bool) -> None:
        """Enable or disable error simulation."""
        self.simulate_error = value

    def set_delay(self, ms: int) -> None:
        """Set the artificial latency in milliseconds."""
        self.delay_ms = ms

    def reset(self) -> None:
        """Log out and restore the initial fixture."""
        self._authenticated = False
        self._current_user = None
        self._load_fixture()

    def _load_fixture(self) -> None:
        users = _fixture_users()
        self._messages = _fixture_messages(users, now_ms())
        self._chats = {
            "chat-1": Chat(
                id="chat-1",
                title="John Doe",
                type=ChatType.PRIVATE,
                username="john_doe",
                unread_count=2,
                last_message=self._messages["chat-1"][0],
            ),
            "chat-2": Chat(
                id="chat-2",
                title="Project Team",
                type=ChatType.GROUP,
                username="project_team",
                unread_count=5,
                last_message=self._messages["chat-2"][0],
            ),
            "chat-3": Chat(
                id="chat-3",
                title="Tech News",
                type=ChatType.CHANNEL,
                username="tech_news",
                unread_count=0,
                last_message=self._messages["chat-3"][0],
            ),
        }

    async def _simulate(self, operation: str) -> None:
        """Apply latency, then fail if error simulation is on."""
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000)
        if self.simulate_error:
            raise ProviderError(
                operation=operation,
                message="Simulated Telegram API error",
            )

    def _require_auth(self, operation: str) -> None:
        if not self._authenticated:
            raise NotAuthenticatedError(operation=operation)

    async def login(self, phone: str) -> None:
        await self._simulate("login")
        self._authenticated = True
        self._current_user = UserInfo(
            id=CURRENT_USER_ID,
            phone=phone,
            username="mock_user",
            first_name="Mock",
            last_name="User",
        )

    async def logout(self) -> None:
        await self._simulate("logout")
        self._authenticated = False
        self._current_user = None

    def is_authenticated(self) -> bool:
        return self._authenticated

    async def get_current_user(self) -> UserInfo | None:
        await self._simulate("get_current_user")
        return self._current_user

    async def list_chats(self) -> list[Chat]:
        await self._simulate("list_chats")
        self._require_auth("list_chats")
        return list(self._chats.values())

    async def get_messages(self, chat_id: str, limit: int) -> list[Message]:
        await self._simulate("get_messages")
        self._require_auth("get_messages")
        return self._messages.get(chat_id, [])[:limit]

    async def send_message(self, chat_id: str, text: str) -> Message:
        await self._simulate("send_message")
        self._require_auth("send_message")

        chat = self._chats.get(chat_id)
        if chat is None:
            raise ChatNotFoundError(operation="send_message", chat_id=chat_id)

        me = self._current_user
        message = Message(
            id=f"msg-sent-{next(self._sent_ids)}",
            chat_id=chat_id,
            sender=User(
                id=CURRENT_USER_ID,
                username=me.username if me else None,
                first_name=me.first_name if me else None,
                last_name=me.last_name if me else None,
            ),
            text=text,
            timestamp=now_ms(),
            is_read=True,
        )
        self._messages.setdefault(chat_id, []).insert(0, message)
        chat.last_message = message
        return message
