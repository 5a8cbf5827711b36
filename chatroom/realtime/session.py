"""
Per-connection chat session.

One ChatSession drives one transport from open to close: it prompts for a
display name, claims it through the registry, replays history, stores and
broadcasts chat lines, and cleans up presence on close. Inbound frames are
handled one at a time by the caller's receive loop, so a connection's own
messages are never reordered.

Store failures are logged and never shown to the user. Name validation
failures are sent to this connection only.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from ..config.models import HistoryRetention
from ..exceptions import ChatroomError, DatabaseError, create_error_context, handle_exception
from ..persistence.message_store import MessageStore, format_chat_line
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once
from ..structured_logging.logging_context import bind_connection_context, bind_username
from ..utils.timestamps import now_timestamp
from . import messages
from .connection_models import ChatConnection
from .connection_registry import ConnectionRegistry
from .connection_state_machine import ChatSessionStateMachine
from .message_broadcaster import Broadcaster
from .transport import ChatTransport

logger = get_logger(__name__)


class ChatSession:
    """
    Session logic for one connection.

    Args:
        transport: Open transport for this client
        registry: Shared connection registry
        store: Shared message store
        broadcaster: Fan-out over the same registry
        history_retention: What happens to this user's messages on close
        clock: Current chat timestamp, used for the join time
    """

    def __init__(
        self,
        transport: ChatTransport,
        registry: ConnectionRegistry,
        store: MessageStore,
        broadcaster: Broadcaster,
        history_retention: HistoryRetention = HistoryRetention.RETAIN,
        clock: Callable[[], str] = now_timestamp,
    ) -> None:
        self.transport = transport
        self.registry = registry
        self.store = store
        self.broadcaster = broadcaster
        self.history_retention = history_retention
        self._clock = clock
        self.connection = ChatConnection(transport=transport, remote_address=transport.remote_address)
        self.state = ChatSessionStateMachine(self.connection.connection_id)
        self._closed_event = asyncio.Event()

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id

    def bind_logging_context(self) -> None:
        bind_connection_context(
            self.connection.connection_id,
            remote_address=self.connection.remote_address,
            username=self.connection.username,
        )

    async def send(self, text: str) -> None:
        """Send a frame to this connection only."""
        await self.transport.send_text(text)

    async def open(self) -> None:
        """
        Run the connect transition.

        The prompt goes out before the connection joins the registry, so this
        client always sees its prompt before any visitor-count broadcast.
        """
        self.bind_logging_context()
        await self.send(messages.NAME_PROMPT)
        await self.registry.add(self.connection)
        logger.info("New connection", total_connections=self.registry.size)
        await self.broadcaster.broadcast_visitor_count()

    async def handle_message(self, text: str) -> None:
        """Dispatch one inbound frame according to the current state."""
        if self.state.is_closed:
            logger.debug("Frame ignored on closed session")
            return
        if self.state.is_connected:
            await self._handle_name_attempt(text)
        else:
            await self._handle_chat_message(text)

    async def _handle_name_attempt(self, text: str) -> None:
        proposed = text.strip()
        if not proposed:
            await self.send(messages.NAME_EMPTY_PROMPT)
            return

        claimed = await self.registry.claim_username(self.connection, proposed, join_time=self._clock())
        if not claimed:
            await self.send(messages.NAME_TAKEN_PROMPT)
            return

        self.state.authenticate()
        bind_username(proposed)
        join_time = self.connection.join_time or self._clock()
        logger.info("User authenticated", join_time=join_time)

        # Queue the visitor row on the store lock before the first yield after
        # the claim, so a concurrent rename's row update always lands after it.
        try:
            await self.store.insert_visitor(self.registry.size, proposed, self.connection.remote_address, join_time)
        except DatabaseError as e:
            log_exception_once(logger, "error", "Failed to record visitor", exc=e)

        # A rename may land at any await below; announce the name as it is now
        await self.send(messages.welcome(self.connection.username or proposed))
        await self.broadcaster.broadcast(messages.joined(self.connection.username or proposed))
        await self.send(messages.connected_users(self.registry.authenticated_usernames()))

        try:
            history = await self.store.history_since(join_time)
        except DatabaseError as e:
            log_exception_once(logger, "error", "Failed to load chat history", exc=e)
            return
        for entry in history:
            await self.send(entry.format_line())
        logger.debug("History replayed", replayed=len(history), since=join_time)

    async def _handle_chat_message(self, text: str) -> None:
        username = self.connection.username or ""
        logger.info("Received chat message", message_length=len(text))
        try:
            assigned_time = await self.store.insert_message(username, self.connection.remote_address, text)
        except DatabaseError as e:
            log_exception_once(logger, "error", "Chat message dropped after store failure", exc=e)
            return
        await self.broadcaster.broadcast(format_chat_line(username, assigned_time, text))

    def handle_error(self, exc: BaseException) -> ChatroomError | None:
        """
        Normalize and log a connection-level error; the close transition still follows.

        Returns:
            The ChatroomError the failure was converted to, or None for
            non-Exception signals
        """
        if not isinstance(exc, Exception):
            logger.warning("Chat connection error", error_type=type(exc).__name__, error=str(exc))
            return None
        context = create_error_context(
            connection_id=self.connection.connection_id,
            username=self.connection.username,
            remote_address=self.connection.remote_address,
        )
        return handle_exception(exc, context)

    async def close(self) -> None:
        """
        Run the close transition. Idempotent.

        An authenticated user gets a departure broadcast and loses their
        visitor record (and, under the purge policy, their messages). The
        updated visitor count goes to everyone left either way.
        """
        if self.state.is_closed:
            return
        was_authenticated = self.state.is_authenticated
        self.state.close()
        try:
            await self.registry.remove(self.connection)

            username = self.connection.username if was_authenticated else None
            logger.info("User disconnected", username=username, remaining_connections=self.registry.size)

            if username:
                await self.broadcaster.broadcast(messages.disconnected(username))
                try:
                    await self.store.delete_visitor(username, self.connection.remote_address)
                except DatabaseError as e:
                    log_exception_once(logger, "error", "Failed to delete visitor", exc=e)
                if self.history_retention == HistoryRetention.PURGE_ON_DISCONNECT:
                    try:
                        await self.store.delete_messages_by_username(username)
                    except DatabaseError as e:
                        log_exception_once(logger, "error", "Failed to purge chat history", exc=e)

            await self.broadcaster.broadcast_visitor_count()
        finally:
            self._closed_event.set()

    @property
    def is_closed(self) -> bool:
        return self.state.is_closed

    async def wait_closed(self) -> None:
        """Wait until the close transition has finished."""
        await self._closed_event.wait()

    def to_dict(self) -> dict[str, Any]:
        return {**self.connection.to_dict(), "state": self.state.current_state.id}
