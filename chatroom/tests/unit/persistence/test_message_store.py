"""
Tests for the MessageStore.

Runs against a real in-memory SQLite database through aiosqlite.
"""

import asyncio

import pytest

from chatroom.exceptions import DatabaseError
from chatroom.persistence.message_store import HistoryEntry, MessageStore
from chatroom.utils.timestamps import EPOCH


class TestVisitors:
    """Visitor presence rows."""

    @pytest.mark.asyncio
    async def test_insert_and_list_visitors(self, message_store: MessageStore):
        await message_store.insert_visitor(1, "alice", "10.0.0.1")
        await message_store.insert_visitor(2, "bob", "10.0.0.2", time="2024-01-01 12:30:00")

        visitors = await message_store.list_visitors()

        assert [(v["username"], v["ip"], v["count"]) for v in visitors] == [
            ("alice", "10.0.0.1", 1),
            ("bob", "10.0.0.2", 2),
        ]
        assert visitors[0]["time"] == "2024-01-01 12:00:00"
        assert visitors[1]["time"] == "2024-01-01 12:30:00"

    @pytest.mark.asyncio
    async def test_delete_visitor_requires_username_and_ip_match(self, message_store: MessageStore):
        await message_store.insert_visitor(1, "alice", "10.0.0.1")

        assert await message_store.delete_visitor("alice", "10.0.0.9") == 0
        assert await message_store.delete_visitor("alicia", "10.0.0.1") == 0
        assert await message_store.count_visitors() == 1

        assert await message_store.delete_visitor("alice", "10.0.0.1") == 1
        assert await message_store.count_visitors() == 0

    @pytest.mark.asyncio
    async def test_delete_visitor_removes_at_most_one_row(self, message_store: MessageStore):
        await message_store.insert_visitor(1, "alice", "10.0.0.1")
        await message_store.insert_visitor(2, "alice", "10.0.0.1")

        assert await message_store.delete_visitor("alice", "10.0.0.1") == 1
        remaining = await message_store.list_visitors()
        assert len(remaining) == 1
        assert remaining[0]["count"] == 2

    @pytest.mark.asyncio
    async def test_rename_visitor_scoped_to_ip(self, message_store: MessageStore):
        await message_store.insert_visitor(1, "alice", "10.0.0.1")
        await message_store.insert_visitor(2, "alice", "10.0.0.2")

        assert await message_store.rename_visitor("alice", "alicia", "10.0.0.1") == 1

        names = {(v["username"], v["ip"]) for v in await message_store.list_visitors()}
        assert names == {("alicia", "10.0.0.1"), ("alice", "10.0.0.2")}


class TestChatMessages:
    """Append-only chat log."""

    @pytest.mark.asyncio
    async def test_insert_message_returns_store_assigned_time(self, message_store: MessageStore, clock):
        clock.set("2024-01-01 12:00:05")

        assigned = await message_store.insert_message("alice", "10.0.0.1", "hi")

        assert assigned == "2024-01-01 12:00:05"
        history = await message_store.history_since(EPOCH)
        assert history == [HistoryEntry(username="alice", message="hi", time="2024-01-01 12:00:05")]

    @pytest.mark.asyncio
    async def test_assigned_times_never_decrease(self, message_store: MessageStore, clock):
        clock.set("2024-01-01 12:00:10")
        first = await message_store.insert_message("alice", "10.0.0.1", "first")
        clock.set("2024-01-01 11:59:59")  # wall clock stepped backwards
        second = await message_store.insert_message("alice", "10.0.0.1", "second")

        assert first == "2024-01-01 12:00:10"
        assert second == first

    @pytest.mark.asyncio
    async def test_history_since_filters_and_orders(self, message_store: MessageStore, clock):
        clock.set("2024-01-01 12:00:00")
        await message_store.insert_message("alice", "10.0.0.1", "before")
        clock.set("2024-01-01 12:00:05")
        await message_store.insert_message("bob", "10.0.0.2", "at join")
        clock.set("2024-01-01 12:00:09")
        await message_store.insert_message("alice", "10.0.0.1", "after")

        history = await message_store.history_since("2024-01-01 12:00:05")

        assert [entry.message for entry in history] == ["at join", "after"]
        assert history[0].format_line() == "bob [2024-01-01 12:00:05]: at join"

    @pytest.mark.asyncio
    async def test_history_since_epoch_returns_everything(self, message_store: MessageStore):
        for text in ("one", "two", "three"):
            await message_store.insert_message("alice", "10.0.0.1", text)

        history = await message_store.history_since(EPOCH)

        assert [entry.message for entry in history] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_messages_have_no_size_cap(self, message_store: MessageStore):
        payload = "x" * 100_000
        await message_store.insert_message("alice", "10.0.0.1", payload)

        history = await message_store.history_since(EPOCH)
        assert history[0].message == payload

    @pytest.mark.asyncio
    async def test_delete_messages_by_username(self, message_store: MessageStore):
        await message_store.insert_message("alice", "10.0.0.1", "a1")
        await message_store.insert_message("bob", "10.0.0.2", "b1")
        await message_store.insert_message("alice", "10.0.0.1", "a2")

        assert await message_store.delete_messages_by_username("alice") == 2

        history = await message_store.history_since(EPOCH)
        assert [entry.username for entry in history] == ["bob"]

    @pytest.mark.asyncio
    async def test_concurrent_inserts_are_serialized(self, message_store: MessageStore):
        await asyncio.gather(*[message_store.insert_message("alice", "10.0.0.1", f"m{i}") for i in range(20)])

        history = await message_store.history_since(EPOCH)
        assert sorted(entry.message for entry in history) == sorted(f"m{i}" for i in range(20))


class TestClose:
    """Store shutdown."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, message_store: MessageStore):
        await message_store.close()
        await message_store.close()

        assert message_store.is_closed

    @pytest.mark.asyncio
    async def test_operations_after_close_raise_database_error(self, message_store: MessageStore):
        await message_store.close()

        with pytest.raises(DatabaseError) as exc_info:
            await message_store.insert_message("alice", "10.0.0.1", "too late")

        assert exc_info.value.operation == "insert_message"
        assert exc_info.value.table == "chat_messages"

    @pytest.mark.asyncio
    async def test_close_waits_for_in_flight_write(self, message_store: MessageStore):
        insert = asyncio.create_task(message_store.insert_message("alice", "10.0.0.1", "in flight"))
        await asyncio.sleep(0)

        await message_store.close()

        assert await insert
