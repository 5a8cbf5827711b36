"""Tests for ChatContainer wiring and lifecycle."""

import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from chatroom.config.models import AppConfig, HistoryRetention
from chatroom.container import ChatContainer
from chatroom.realtime.session import ChatSession
from chatroom.tests.fixtures.fake_transport import FakeTransport


async def run_session(session: ChatSession, transport: FakeTransport) -> None:
    """Receive loop equivalent to the WebSocket handler's."""
    try:
        await session.open()
        while True:
            await session.handle_message(await transport.receive_text())
    except WebSocketDisconnect:
        pass
    finally:
        await session.close()


class TestChatContainer:
    """Container lifecycle."""

    def test_wiring_shares_one_registry(self, app_config: AppConfig):
        container = ChatContainer(app_config)

        assert container.broadcaster.registry is container.registry
        assert container.keepalive.registry is container.registry
        assert container.rename_service.registry is container.registry
        assert container.rename_service.store is container.store
        assert container.keepalive.interval == app_config.chat.keepalive_interval

    @pytest.mark.asyncio
    async def test_initialize_and_shutdown_are_idempotent(self, app_config: AppConfig):
        container = ChatContainer(app_config)

        await container.initialize()
        await container.initialize()
        assert container.is_initialized
        assert container.keepalive.is_running

        await container.shutdown()
        await container.shutdown()
        assert container.is_shutting_down
        assert not container.keepalive.is_running
        assert container.store.is_closed

    @pytest.mark.asyncio
    async def test_sessions_use_configured_retention(self, app_config: AppConfig):
        app_config.chat.history_retention = HistoryRetention.PURGE_ON_DISCONNECT
        container = ChatContainer(app_config)

        session = container.create_session(FakeTransport())

        assert session.history_retention is HistoryRetention.PURGE_ON_DISCONNECT
        assert session in container.sessions
        container.release_session(session)
        assert session not in container.sessions

    @pytest.mark.asyncio
    async def test_shutdown_closes_connections_before_store(self, app_config: AppConfig):
        container = ChatContainer(app_config)
        await container.initialize()
        transport = FakeTransport("10.0.0.1")
        session = container.create_session(transport)
        task = asyncio.create_task(run_session(session, transport))
        transport.feed("Alice")
        while not session.state.is_authenticated:
            await asyncio.sleep(0.01)

        await container.shutdown()
        await task

        assert transport.closed_with == (1001, "Server shutting down")
        assert session.is_closed
        assert container.registry.size == 0
        assert container.store.is_closed

    @pytest.mark.asyncio
    async def test_stats(self, app_config: AppConfig):
        container = ChatContainer(app_config)

        stats = container.get_stats()

        assert stats["connections"] == 0
        assert stats["authenticated"] == 0
        assert stats["keepalive"]["running"] is False
