"""
Message store for the chatroom server.

Durable (or in-memory) append-only log of chat messages plus the visitors
presence table. Every operation runs under one asyncio lock: conflicting
writes are serialized here, the in-memory SQLite connection is never used by
two sessions at once, and close() drains whatever is in flight before the
engine is disposed.

Failures surface as DatabaseError; callers decide whether to log or report.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import DatabaseManager
from ..exceptions import DatabaseError
from ..models.chat_message import ChatMessage
from ..models.visitor import Visitor
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.timestamps import EPOCH, now_timestamp

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class HistoryEntry:
    """One replayed chat line."""

    username: str
    message: str
    time: str

    def format_line(self) -> str:
        """Render the line the way live chat broadcasts render it."""
        return format_chat_line(self.username, self.time, self.message)


def format_chat_line(username: str, time: str, message: str) -> str:
    return f"{username} [{time}]: {message}"


class MessageStore:
    """
    Async facade over the visitors and chat_messages tables.

    Args:
        database: Initialized DatabaseManager
        clock: Returns the current time as a chat timestamp string
    """

    def __init__(self, database: DatabaseManager, clock: Callable[[], str] = now_timestamp) -> None:
        self._database = database
        self._clock = clock
        self._lock = asyncio.Lock()
        self._closed = False
        self._last_message_time = EPOCH

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def _run(
        self,
        operation: str,
        table: str,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        """Run one unit of work in its own transaction under the store lock."""
        async with self._lock:
            if self._closed:
                raise DatabaseError(
                    "Message store is closed", operation=operation, table=table, user_friendly="Store unavailable"
                )
            try:
                async with self._database.session() as session:
                    async with session.begin():
                        return await work(session)
            except SQLAlchemyError as e:
                raise DatabaseError(
                    f"{operation} failed: {e}",
                    operation=operation,
                    table=table,
                    details={"original_type": type(e).__name__},
                ) from e

    async def insert_visitor(self, count: int, username: str, ip: str, time: str | None = None) -> None:
        """Record a presence snapshot row for a newly authenticated connection."""

        async def work(session: AsyncSession) -> None:
            session.add(Visitor(count=count, username=username, ip=ip, time=time or self._clock()))

        await self._run("insert_visitor", "visitors", work)
        logger.debug("Visitor recorded", username=username, ip=ip, count=count)

    async def delete_visitor(self, username: str, ip: str) -> int:
        """
        Delete the visitor row matching both username and ip exactly.

        Deletes at most one row and returns how many were removed.
        """

        async def work(session: AsyncSession) -> int:
            row_id = await session.scalar(
                select(Visitor.id).where(Visitor.username == username, Visitor.ip == ip).order_by(Visitor.id).limit(1)
            )
            if row_id is None:
                return 0
            await session.execute(delete(Visitor).where(Visitor.id == row_id))
            return 1

        deleted = await self._run("delete_visitor", "visitors", work)
        logger.debug("Visitor removed", username=username, ip=ip, deleted=deleted)
        return deleted

    async def rename_visitor(self, old_name: str, new_name: str, ip: str) -> int:
        """Rename the visitor row for (old_name, ip); returns rows updated."""

        async def work(session: AsyncSession) -> int:
            result: Any = await session.execute(
                update(Visitor).where(Visitor.username == old_name, Visitor.ip == ip).values(username=new_name)
            )
            return int(result.rowcount or 0)

        updated = await self._run("rename_visitor", "visitors", work)
        logger.debug("Visitor renamed", old_name=old_name, new_name=new_name, ip=ip, updated=updated)
        return updated

    async def list_visitors(self) -> list[dict[str, Any]]:
        """Return every visitor row in insertion order."""

        async def work(session: AsyncSession) -> list[dict[str, Any]]:
            rows = await session.scalars(select(Visitor).order_by(Visitor.id))
            return [row.to_dict() for row in rows]

        return await self._run("list_visitors", "visitors", work)

    async def count_visitors(self) -> int:
        async def work(session: AsyncSession) -> int:
            return int(await session.scalar(select(func.count()).select_from(Visitor)) or 0)

        return await self._run("count_visitors", "visitors", work)

    async def insert_message(self, username: str, ip: str, message: str, time: str | None = None) -> str:
        """
        Append a chat message and return its server-assigned time.

        The time is taken inside the store lock and never goes below the
        previous insert's, so times are non-decreasing in insertion order.
        The value returned is read back from the inserted row.
        """

        async def work(session: AsyncSession) -> str:
            assigned = max(time or self._clock(), self._last_message_time)
            row = ChatMessage(username=username, ip=ip, message=message, time=assigned)
            session.add(row)
            await session.flush()
            stored_time = await session.scalar(select(ChatMessage.time).where(ChatMessage.id == row.id))
            if stored_time is None:
                raise DatabaseError(
                    "Inserted chat message could not be read back",
                    operation="insert_message",
                    table="chat_messages",
                )
            self._last_message_time = stored_time
            return stored_time

        assigned_time = await self._run("insert_message", "chat_messages", work)
        logger.debug("Chat message stored", username=username, time=assigned_time)
        return assigned_time

    async def history_since(self, since: str = EPOCH) -> list[HistoryEntry]:
        """Messages with time >= since, oldest first; the epoch returns everything."""

        async def work(session: AsyncSession) -> list[HistoryEntry]:
            result = await session.execute(
                select(ChatMessage.username, ChatMessage.message, ChatMessage.time)
                .where(ChatMessage.time >= since)
                .order_by(ChatMessage.time.asc(), ChatMessage.id.asc())
            )
            return [HistoryEntry(username=u, message=m, time=t) for u, m, t in result.all()]

        return await self._run("history_since", "chat_messages", work)

    async def delete_messages_by_username(self, username: str) -> int:
        """Bulk-delete every chat message authored by username."""

        async def work(session: AsyncSession) -> int:
            result: Any = await session.execute(delete(ChatMessage).where(ChatMessage.username == username))
            return int(result.rowcount or 0)

        deleted = await self._run("delete_messages_by_username", "chat_messages", work)
        logger.info("Chat history purged", username=username, deleted=deleted)
        return deleted

    async def close(self) -> None:
        """
        Close the store. Idempotent.

        Waits for the in-flight operation (if any) to finish before the
        engine is disposed; later calls raise DatabaseError.
        """
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            await self._database.dispose()
        logger.info("Message store closed")
