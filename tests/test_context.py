"""Tests for conversation context assembly."""

import random
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from aichatbot.conversation import MAX_CONTEXT_SETTING, ContextManager
from aichatbot.conversation.prompts import CHAT_SYSTEM_PROMPT
from aichatbot.llm import AIMessage
from aichatbot.memory import Message, MessageRole

START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def seed_messages(store, user_id: str, count: int) -> list[Message]:
    """Store alternating user/assistant turns one minute apart."""
    stored = []
    for i in range(count):
        role = MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT
        stored.append(
            await store.create_message(
                Message(
                    user_id=user_id,
                    role=role,
                    content=f"message {i}",
                    created_at=START + timedelta(minutes=i),
                )
            )
        )
    return stored


class TestBuildContext:
    """Test the bounded context window."""

    @pytest.mark.asyncio
    async def test_window_keeps_newest_in_order(self, memory_store):
        await seed_messages(memory_store, "u1", 25)
        manager = ContextManager(memory_store, default_limit=20)

        context = await manager.build_context("u1")

        assert len(context) == 21
        assert context[0].role == "system"
        assert context[0].content == CHAT_SYSTEM_PROMPT
        assert [m.content for m in context[1:]] == [f"message {i}" for i in range(5, 25)]

    @pytest.mark.asyncio
    async def test_roles_preserved(self, memory_store):
        await seed_messages(memory_store, "u1", 4)
        manager = ContextManager(memory_store, default_limit=20)

        context = await manager.build_context("u1")

        assert [m.role for m in context] == ["system", "user", "assistant", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_empty_history(self, memory_store):
        manager = ContextManager(memory_store, default_limit=20)
        context = await manager.build_context("nobody")
        assert len(context) == 1

    @pytest.mark.asyncio
    async def test_only_own_messages(self, memory_store):
        await seed_messages(memory_store, "u1", 3)
        await seed_messages(memory_store, "u2", 5)
        manager = ContextManager(memory_store, default_limit=20)

        context = await manager.build_context("u1")

        assert len(context) == 4

    @pytest.mark.asyncio
    async def test_custom_system_prompt(self, memory_store):
        manager = ContextManager(memory_store, default_limit=20)
        context = await manager.build_context("u1", system_prompt="Translate to French")
        assert context[0] == AIMessage(role="system", content="Translate to French")

    @pytest.mark.asyncio
    async def test_pending_turn_appended_outside_limit(self, memory_store):
        await seed_messages(memory_store, "u1", 10)
        await memory_store.set_setting(MAX_CONTEXT_SETTING, "3")
        manager = ContextManager(memory_store, default_limit=20)

        context = await manager.build_context(
            "u1", pending=AIMessage(role="user", content="new question")
        )

        assert len(context) == 5
        assert [m.content for m in context[1:4]] == ["message 7", "message 8", "message 9"]
        assert context[-1].content == "new question"

    @pytest.mark.asyncio
    async def test_equal_timestamps_keep_insertion_order(self, memory_store):
        for i in range(3):
            await memory_store.create_message(
                Message(user_id="u1", role=MessageRole.USER, content=f"same {i}", created_at=START)
            )
        manager = ContextManager(memory_store, default_limit=20)

        context = await manager.build_context("u1")

        assert [m.content for m in context[1:]] == ["same 0", "same 1", "same 2"]

    @pytest.mark.asyncio
    async def test_storage_order_does_not_matter(self):
        """Whatever order storage returns, the context is chronological."""
        history = [
            Message(
                user_id="u1",
                role=MessageRole.USER,
                content=f"message {i}",
                created_at=START + timedelta(minutes=i),
            )
            for i in range(6)
        ]
        random.Random(7).shuffle(history)

        store = Mock()
        store.get_setting = AsyncMock(return_value=None)
        store.list_recent_messages = AsyncMock(return_value=history)
        manager = ContextManager(store, default_limit=6)

        context = await manager.build_context("u1")

        assert [m.content for m in context[1:]] == [f"message {i}" for i in range(6)]
        store.list_recent_messages.assert_awaited_once_with("u1", 6)


class TestContextLimit:
    """Test how the limit setting is read."""

    @pytest.mark.asyncio
    async def test_default_when_unset(self, memory_store):
        manager = ContextManager(memory_store, default_limit=20)
        assert await manager.get_limit() == 20

    @pytest.mark.asyncio
    async def test_setting_overrides_default(self, memory_store):
        await memory_store.set_setting(MAX_CONTEXT_SETTING, "5")
        manager = ContextManager(memory_store, default_limit=20)
        assert await manager.get_limit() == 5

    @pytest.mark.asyncio
    async def test_invalid_setting_falls_back(self, memory_store):
        await memory_store.set_setting(MAX_CONTEXT_SETTING, "lots")
        manager = ContextManager(memory_store, default_limit=20)
        assert await manager.get_limit() == 20

    @pytest.mark.asyncio
    async def test_negative_setting_clamped(self, memory_store):
        await memory_store.set_setting(MAX_CONTEXT_SETTING, "-4")
        manager = ContextManager(memory_store, default_limit=20)
        assert await manager.get_limit() == 0

    @pytest.mark.asyncio
    async def test_zero_limit_sends_only_system_message(self, memory_store):
        await seed_messages(memory_store, "u1", 5)
        await memory_store.set_setting(MAX_CONTEXT_SETTING, "0")
        manager = ContextManager(memory_store, default_limit=20)

        context = await manager.build_context("u1")

        assert len(context) == 1
        assert context[0].role == "system"


class TestClear:
    """Test clearing a conversation."""

    @pytest.mark.asyncio
    async def test_clear_deletes_only_that_user(self, memory_store):
        await seed_messages(memory_store, "u1", 4)
        await seed_messages(memory_store, "u2", 2)
        manager = ContextManager(memory_store, default_limit=20)

        assert await manager.clear("u1") == 4
        assert len(await manager.build_context("u1")) == 1
        assert len(await manager.build_context("u2")) == 3
