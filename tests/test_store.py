"""Tests for the SQLite memory store."""

from datetime import datetime, timedelta, timezone

import pytest

from aichatbot.memory import Message, MessageRole, RequestType, UsageRecord

BASE = datetime(2026, 5, 10, 9, 30, tzinfo=timezone.utc)


class TestSettings:
    """Test settings storage."""

    @pytest.mark.asyncio
    async def test_missing_setting(self, memory_store):
        assert await memory_store.get_setting("max_context_messages") is None

    @pytest.mark.asyncio
    async def test_set_and_replace(self, memory_store):
        await memory_store.set_setting("max_context_messages", "10", "Context size")
        await memory_store.set_setting("max_context_messages", "12")
        assert await memory_store.get_setting("max_context_messages") == "12"


class TestMessages:
    """Test message storage."""

    @pytest.mark.asyncio
    async def test_create_assigns_id(self, memory_store):
        message = await memory_store.create_message(
            Message(user_id="u1", role=MessageRole.USER, content="hello")
        )
        assert message.id

    @pytest.mark.asyncio
    async def test_round_trip_fields(self, memory_store):
        await memory_store.create_message(
            Message(
                user_id="u1",
                role=MessageRole.ASSISTANT,
                content="Looks like a cat",
                tokens=42,
                cost=0.0012,
                file_url="https://img/cat.png",
                file_type="image",
                created_at=BASE,
            )
        )

        [stored] = await memory_store.list_recent_messages("u1")

        assert stored.role == MessageRole.ASSISTANT
        assert stored.tokens == 42
        assert stored.cost == pytest.approx(0.0012)
        assert stored.file_url == "https://img/cat.png"
        assert stored.file_name is None
        assert stored.created_at == BASE

    @pytest.mark.asyncio
    async def test_recent_newest_first_with_limit(self, memory_store):
        for i in range(5):
            await memory_store.create_message(
                Message(
                    user_id="u1",
                    role=MessageRole.USER,
                    content=str(i),
                    created_at=BASE + timedelta(seconds=i),
                )
            )

        recent = await memory_store.list_recent_messages("u1", limit=3)

        assert [m.content for m in recent] == ["4", "3", "2"]

    @pytest.mark.asyncio
    async def test_naive_and_aware_times_compare(self, memory_store):
        local_naive = datetime(2026, 5, 10, 9, 30)
        await memory_store.create_message(
            Message(user_id="u1", role=MessageRole.USER, content="naive", created_at=local_naive)
        )
        [stored] = await memory_store.list_recent_messages("u1")
        assert stored.created_at == local_naive.astimezone()

    @pytest.mark.asyncio
    async def test_delete_messages(self, memory_store):
        for content in ("a", "b"):
            await memory_store.create_message(
                Message(user_id="u1", role=MessageRole.USER, content=content)
            )
        await memory_store.create_message(
            Message(user_id="u2", role=MessageRole.USER, content="c")
        )

        assert await memory_store.delete_messages("u1") == 2
        assert await memory_store.list_recent_messages("u1") == []
        assert len(await memory_store.list_recent_messages("u2")) == 1


class TestUsage:
    """Test usage storage and aggregation."""

    async def _add(self, store, user_id, tokens, cost, at, request_type=RequestType.TEXT):
        return await store.create_usage(
            UsageRecord(
                user_id=user_id,
                tokens=tokens,
                cost=cost,
                model="gpt-4",
                request_type=request_type,
                created_at=at,
            )
        )

    @pytest.mark.asyncio
    async def test_empty_aggregate_is_zero(self, memory_store):
        aggregate = await memory_store.aggregate_usage()
        assert (aggregate.count, aggregate.tokens, aggregate.cost) == (0, 0, 0.0)
        assert aggregate.average_cost == 0.0

    @pytest.mark.asyncio
    async def test_aggregate_by_user(self, memory_store):
        await self._add(memory_store, "u1", 100, 0.01, BASE)
        await self._add(memory_store, "u1", 200, 0.02, BASE)
        await self._add(memory_store, "u2", 999, 0.5, BASE)

        aggregate = await memory_store.aggregate_usage(user_id="u1")

        assert aggregate.count == 2
        assert aggregate.tokens == 300
        assert aggregate.cost == pytest.approx(0.03)
        assert aggregate.average_cost == pytest.approx(0.015)

    @pytest.mark.asyncio
    async def test_bounds_are_inclusive(self, memory_store):
        await self._add(memory_store, "u1", 1, 0.0, BASE - timedelta(seconds=1))
        await self._add(memory_store, "u1", 10, 0.0, BASE)
        await self._add(memory_store, "u1", 100, 0.0, BASE + timedelta(hours=1))
        await self._add(memory_store, "u1", 1000, 0.0, BASE + timedelta(hours=1, seconds=1))

        aggregate = await memory_store.aggregate_usage(
            start=BASE, end=BASE + timedelta(hours=1)
        )

        assert aggregate.count == 2
        assert aggregate.tokens == 110

    @pytest.mark.asyncio
    async def test_list_usage_newest_first(self, memory_store):
        await self._add(memory_store, "u1", 1, 0.0, BASE, RequestType.FILE)
        await self._add(memory_store, "u1", 2, 0.0, BASE + timedelta(minutes=1), RequestType.IMAGE)

        records = await memory_store.list_usage(user_id="u1")

        assert [r.tokens for r in records] == [2, 1]
        assert records[0].request_type == RequestType.IMAGE
        assert records[1].request_type == RequestType.FILE

    def test_negative_usage_rejected_by_model(self):
        with pytest.raises(ValueError):
            UsageRecord(user_id="u1", tokens=-1, cost=0.0, model="gpt-4")
