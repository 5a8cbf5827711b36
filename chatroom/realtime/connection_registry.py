"""
Connection registry for the chatroom server.

The registry is the single piece of mutable shared state: the set of live
connections and which of them hold which display name. Every mutation
(add, remove, name claim, rename) runs under one asyncio lock and contains no
await between its check and its write, so no other task can observe a
duplicate-name window. Readers take a snapshot, which is a plain synchronous
copy and therefore never interleaves with a mutation on the event loop.

Name lookups are linear scans in insertion order. Rooms are small; a
name index would be the change to make if they are not.
"""

import asyncio
from collections.abc import Iterator

from ..exceptions import ConnectionNotFoundError, DuplicateNameError
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.timestamps import now_timestamp
from .connection_models import ChatConnection

logger = get_logger(__name__)


class ConnectionRegistry:
    """Insertion-ordered set of active ChatConnections guarded by one lock."""

    def __init__(self) -> None:
        self._connections: dict[str, ChatConnection] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        return isinstance(connection, ChatConnection) and (
            self._connections.get(connection.connection_id) is connection
        )

    def __iter__(self) -> Iterator[ChatConnection]:
        return iter(self.snapshot())

    @property
    def size(self) -> int:
        """Number of registered connections; this is the visitor count clients see."""
        return len(self._connections)

    def snapshot(self) -> list[ChatConnection]:
        return list(self._connections.values())

    async def add(self, connection: ChatConnection) -> None:
        async with self._lock:
            self._connections[connection.connection_id] = connection
        logger.debug("Connection registered", connection_id=connection.connection_id, total=len(self))

    async def remove(self, connection: ChatConnection) -> bool:
        """Remove a connection; returns False if it was not registered."""
        async with self._lock:
            removed = self._connections.pop(connection.connection_id, None) is not None
        if removed:
            logger.debug("Connection unregistered", connection_id=connection.connection_id, total=len(self))
        return removed

    def is_username_taken(self, name: str, excluding: ChatConnection | None = None) -> bool:
        """True if an authenticated connection other than `excluding` holds name."""
        return any(
            conn.authenticated and conn.username == name and conn is not excluding
            for conn in self._connections.values()
        )

    def find_by_username(self, name: str) -> ChatConnection | None:
        """First authenticated connection holding name, in insertion order."""
        for conn in self._connections.values():
            if conn.authenticated and conn.username == name:
                return conn
        return None

    def authenticated_usernames(self) -> list[str]:
        return [conn.username for conn in self._connections.values() if conn.authenticated and conn.username]

    def authenticated_count(self) -> int:
        return sum(1 for conn in self._connections.values() if conn.authenticated)

    async def claim_username(self, connection: ChatConnection, name: str, join_time: str | None = None) -> bool:
        """
        Atomically check and claim a display name for an unauthenticated connection.

        On success the connection becomes authenticated with its join time
        set; on failure nothing is modified.

        Args:
            connection: The registered connection making the claim
            name: Proposed display name, already trimmed
            join_time: Chat timestamp to record; defaults to now

        Returns:
            True if the name was claimed
        """
        async with self._lock:
            if self.is_username_taken(name, excluding=connection):
                logger.info("Username claim rejected", connection_id=connection.connection_id, username=name)
                return False
            connection.username = name
            connection.join_time = join_time or now_timestamp()
            connection.authenticated = True
        logger.info("Username claimed", connection_id=connection.connection_id, username=name)
        return True

    async def rename_if_available(self, old_name: str, new_name: str) -> ChatConnection:
        """
        Atomically move a display name from one authenticated connection to a new one.

        Checks run in a fixed order: the new name must not belong to a
        different authenticated connection, then the old name must resolve.
        The connection's username is changed in place.

        Returns:
            The renamed connection

        Raises:
            DuplicateNameError: new_name is held by another connection
            ConnectionNotFoundError: no authenticated connection holds old_name
        """
        async with self._lock:
            target = self.find_by_username(old_name)
            if self.is_username_taken(new_name, excluding=target):
                raise DuplicateNameError(new_name)
            if target is None:
                raise ConnectionNotFoundError(old_name)
            target.username = new_name
        logger.info(
            "Connection renamed",
            connection_id=target.connection_id,
            old_name=old_name,
            new_name=new_name,
        )
        return target
