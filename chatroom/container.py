"""
Dependency injection container for the chatroom server.

Owns every shared component and their lifecycle so nothing reaches the
registry or the store through module globals.

USAGE:
    # In application startup (lifespan.py):
    container = ChatContainer(config)
    await container.initialize()
    app.state.container = container

    # In tests:
    container = ChatContainer(config)
    await container.initialize()
    session = container.create_session(fake_transport)
"""

import asyncio
from typing import Any

from .config import get_config
from .config.models import AppConfig
from .database import DatabaseManager
from .exceptions import DatabaseError
from .persistence.message_store import MessageStore
from .realtime.connection_registry import ConnectionRegistry
from .realtime.keepalive_monitor import KeepAliveMonitor
from .realtime.message_broadcaster import Broadcaster
from .realtime.session import ChatSession
from .realtime.transport import ChatTransport
from .services.rename_service import RenameService
from .structured_logging.enhanced_logging_config import get_logger, log_exception_once

logger = get_logger(__name__)

SHUTDOWN_CLOSE_CODE = 1001
SHUTDOWN_CLOSE_REASON = "Server shutting down"


class ChatContainer:
    """
    Application container wiring config, store, registry and services.

    Wiring order: config -> DatabaseManager -> MessageStore ->
    ConnectionRegistry -> Broadcaster -> KeepAliveMonitor -> RenameService.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or get_config()
        self.database = DatabaseManager(self.config.database)
        self.store = MessageStore(self.database)
        self.registry = ConnectionRegistry()
        self.broadcaster = Broadcaster(self.registry)
        self.keepalive = KeepAliveMonitor(self.registry, interval=self.config.chat.keepalive_interval)
        self.rename_service = RenameService(self.registry, self.store, self.broadcaster)

        self.sessions: set[ChatSession] = set()
        self._initialized = False
        self._shutting_down = False
        self._lifecycle_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    async def initialize(self) -> None:
        """Create the store tables and start the keep-alive monitor. Idempotent."""
        async with self._lifecycle_lock:
            if self._initialized:
                logger.warning("Container already initialized - skipping re-initialization")
                return

            logger.info("Initializing ChatContainer...")
            self.database.initialize()
            await self.database.create_tables()
            self.keepalive.start()
            self._initialized = True
            logger.info(
                "ChatContainer initialization complete",
                in_memory_store=self.config.database.is_in_memory,
                history_retention=self.config.chat.history_retention.value,
                keepalive_interval=self.config.chat.keepalive_interval,
            )

    def create_session(self, transport: ChatTransport) -> ChatSession:
        """Build a session for a newly accepted transport and track it."""
        session = ChatSession(
            transport,
            self.registry,
            self.store,
            self.broadcaster,
            history_retention=self.config.chat.history_retention,
        )
        self.sessions.add(session)
        return session

    def release_session(self, session: ChatSession) -> None:
        self.sessions.discard(session)

    async def shutdown(self) -> None:
        """
        Stop the server-side components. Idempotent.

        Connections are closed before the store so no session write can race
        the store teardown.
        """
        async with self._lifecycle_lock:
            if self._shutting_down:
                return
            self._shutting_down = True
            logger.info("Shutting down ChatContainer...", open_connections=self.registry.size)

            await self.keepalive.stop()
            await self._close_connections()
            await self._wait_for_sessions()
            await self._log_visitors()
            await self.store.close()
            self._initialized = False
            logger.info("ChatContainer shutdown complete")

    async def _close_connections(self) -> None:
        connections = self.registry.snapshot()
        results = await asyncio.gather(
            *[conn.transport.close(code=SHUTDOWN_CLOSE_CODE, reason=SHUTDOWN_CLOSE_REASON) for conn in connections],
            return_exceptions=True,
        )
        for conn, result in zip(connections, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("Error closing connection", connection_id=conn.connection_id, error=str(result))

    async def _wait_for_sessions(self) -> None:
        pending = [session for session in self.sessions if not session.is_closed]
        if not pending:
            return
        timeout = self.config.chat.shutdown_grace_period
        try:
            await asyncio.wait_for(
                asyncio.gather(*[session.wait_closed() for session in pending]),
                timeout=timeout,
            )
        except TimeoutError:
            logger.warning(
                "Sessions still open after shutdown grace period",
                remaining=sum(1 for session in pending if not session.is_closed),
                grace_period=timeout,
            )

    async def _log_visitors(self) -> None:
        if not self._initialized:
            return
        try:
            visitors = await self.store.list_visitors()
        except DatabaseError as e:
            log_exception_once(logger, "error", "Failed to read visitors table at shutdown", exc=e)
            return
        logger.info("Visitors table at shutdown", visitor_count=len(visitors), visitors=visitors)

    def get_stats(self) -> dict[str, Any]:
        return {
            "connections": self.registry.size,
            "authenticated": self.registry.authenticated_count(),
            "keepalive": self.keepalive.get_stats(),
        }
