"""
Unit tests for the Telegram layer.

Tests cover:
- MockTelegramProvider authentication, fixture data and error simulation
- TelegramService filtering, lookup, search and unread counts
"""

import time

import pytest

from telegram_mcp.errors import ChatNotFoundError, NotAuthenticatedError, ProviderError
from telegram_mcp.schema import ChatType
from telegram_mcp.telegram import MockTelegramProvider, TelegramService
from telegram_mcp.telegram.mock import CURRENT_USER_ID


# =============================================================================
# Mock Provider
# =============================================================================


class TestMockAuthentication:
    async def test_starts_logged_out(self, provider: MockTelegramProvider) -> None:
        assert provider.is_authenticated() is False
        assert await provider.get_current_user() is None

    async def test_login(self, provider: MockTelegramProvider) -> None:
        await provider.login("+1234567890")
        assert provider.is_authenticated() is True
        user = await provider.get_current_user()
        assert user.id == CURRENT_USER_ID
        assert user.phone == "+1234567890"
        assert user.username == "mock_user"

    async def test_logout(self, provider: MockTelegramProvider) -> None:
        await provider.login("+1")
        await provider.logout()
        assert provider.is_authenticated() is False
        assert await provider.get_current_user() is None

    @pytest.mark.parametrize("call", [
        lambda p: p.list_chats(),
        lambda p: p.get_messages("chat-1", 10),
        lambda p: p.send_message("chat-1", "hi"),
    ])
    async def test_chat_calls_require_login(self, provider: MockTelegramProvider, call) -> None:
        with pytest.raises(NotAuthenticatedError):
            await call(provider)


class TestMockData:
    @pytest.fixture
    async def logged_in(self, provider: MockTelegramProvider) -> MockTelegramProvider:
        await provider.login("+1")
        return provider

    async def test_fixture_chats(self, logged_in: MockTelegramProvider) -> None:
        chats = await logged_in.list_chats()
        assert [c.id for c in chats] == ["chat-1", "chat-2", "chat-3"]
        assert {c.type for c in chats} == {ChatType.PRIVATE, ChatType.GROUP, ChatType.CHANNEL}
        assert all(c.last_message is not None for c in chats)

    async def test_messages_newest_first(self, logged_in: MockTelegramProvider) -> None:
        messages = await logged_in.get_messages("chat-1", 10)
        assert [m.id for m in messages] == ["msg-1", "msg-4"]
        assert messages[0].timestamp > messages[1].timestamp

    async def test_messages_limit(self, logged_in: MockTelegramProvider) -> None:
        assert len(await logged_in.get_messages("chat-2", 1)) == 1

    async def test_unknown_chat_messages_empty(self, logged_in: MockTelegramProvider) -> None:
        assert await logged_in.get_messages("chat-99", 10) == []

    async def test_send_message(self, logged_in: MockTelegramProvider) -> None:
        sent = await logged_in.send_message("chat-3", "hello there")
        assert sent.sender.id == CURRENT_USER_ID
        assert sent.is_read is True

        messages = await logged_in.get_messages("chat-3", 10)
        assert messages[0].id == sent.id
        chats = {c.id: c for c in await logged_in.list_chats()}
        assert chats["chat-3"].last_message.text == "hello there"

    async def test_send_ids_unique(self, logged_in: MockTelegramProvider) -> None:
        a = await logged_in.send_message("chat-1", "a")
        b = await logged_in.send_message("chat-1", "b")
        assert a.id != b.id

    async def test_send_unknown_chat(self, logged_in: MockTelegramProvider) -> None:
        with pytest.raises(ChatNotFoundError) as exc_info:
            await logged_in.send_message("chat-99", "hi")
        assert exc_info.value.chat_id == "chat-99"

    async def test_reset(self, logged_in: MockTelegramProvider) -> None:
        await logged_in.send_message("chat-1", "extra")
        logged_in.reset()
        assert logged_in.is_authenticated() is False
        await logged_in.login("+1")
        assert len(await logged_in.get_messages("chat-1", 10)) == 2


class TestMockErrorSimulation:
    async def test_constructor_flag(self) -> None:
        provider = MockTelegramProvider(simulate_error=True, delay_ms=0)
        with pytest.raises(ProviderError) as exc_info:
            await provider.login("+1")
        assert exc_info.value.operation == "login"
        assert provider.is_authenticated() is False

    async def test_toggle(self, provider: MockTelegramProvider) -> None:
        await provider.login("+1")
        provider.set_simulate_error(True)
        with pytest.raises(ProviderError):
            await provider.list_chats()
        provider.set_simulate_error(False)
        assert len(await provider.list_chats()) == 3

    async def test_simulated_error_precedes_auth_check(
        self, provider: MockTelegramProvider
    ) -> None:
        provider.set_simulate_error(True)
        with pytest.raises(ProviderError) as exc_info:
            await provider.list_chats()
        assert not isinstance(exc_info.value, NotAuthenticatedError)

    async def test_delay(self, provider: MockTelegramProvider) -> None:
        provider.set_delay(30)
        start = time.monotonic()
        await provider.login("+1")
        assert time.monotonic() - start >= 0.025


# =============================================================================
# Service
# =============================================================================


class TestTelegramService:
    @pytest.fixture
    async def svc(self, service: TelegramService) -> TelegramService:
        await service.login("+1234567890")
        return service

    async def test_login_logout(self, service: TelegramService) -> None:
        await service.login("+1")
        assert service.is_authenticated()
        await service.logout()
        assert not service.is_authenticated()

    async def test_current_user(self, svc: TelegramService) -> None:
        user = await svc.get_current_user()
        assert user.phone == "+1234567890"

    async def test_get_chats_all(self, svc: TelegramService) -> None:
        assert len(await svc.get_chats()) == 3

    async def test_get_chats_by_type(self, svc: TelegramService) -> None:
        chats = await svc.get_chats(chat_type="group")
        assert [c.id for c in chats] == ["chat-2"]

    async def test_get_chats_unread_only(self, svc: TelegramService) -> None:
        chats = await svc.get_chats(unread_only=True)
        assert {c.id for c in chats} == {"chat-1", "chat-2"}

    async def test_get_chats_combined(self, svc: TelegramService) -> None:
        assert await svc.get_chats(chat_type=ChatType.CHANNEL, unread_only=True) == []

    async def test_get_chat(self, svc: TelegramService) -> None:
        assert (await svc.get_chat("chat-2")).title == "Project Team"
        assert await svc.get_chat("chat-99") is None

    async def test_get_messages_default_limit(self, svc: TelegramService) -> None:
        assert len(await svc.get_messages("chat-1")) == 2

    async def test_search_case_insensitive(self, svc: TelegramService) -> None:
        results = await svc.search_messages("chat-1", "UPDATE")
        assert [m.id for m in results] == ["msg-4"]

    async def test_search_limit(self, svc: TelegramService) -> None:
        for i in range(5):
            await svc.send_message("chat-3", f"ping {i}")
        results = await svc.search_messages("chat-3", "ping", limit=2)
        assert [m.text for m in results] == ["ping 4", "ping 3"]

    async def test_search_no_match(self, svc: TelegramService) -> None:
        assert await svc.search_messages("chat-2", "zzz") == []

    async def test_unread_count(self, svc: TelegramService) -> None:
        assert await svc.get_unread_count() == 7

    async def test_send_message(self, svc: TelegramService) -> None:
        sent = await svc.send_message("chat-1", "hi")
        assert sent.chat_id == "chat-1"

    async def test_errors_propagate(self, service: TelegramService) -> None:
        with pytest.raises(NotAuthenticatedError):
            await service.get_chats()
