"""
Message broadcasting for the chat room.

Fan-out of one text frame to every open connection. Formatting is the
caller's job, so the same path carries system notices, join and leave
announcements, and chat lines.
"""

import asyncio
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger
from .connection_registry import ConnectionRegistry

logger = get_logger(__name__)


class Broadcaster:
    """
    Sends identical text to every open registry member.

    Connections whose transport is not open are skipped without error; a
    send that fails is counted and logged but never stops delivery to the
    other recipients.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    async def broadcast(self, text: str) -> dict[str, Any]:
        """
        Broadcast text to all open connections.

        Returns:
            dict: Broadcast delivery statistics
        """
        targets = self.registry.snapshot()
        open_targets = [conn for conn in targets if conn.is_open()]

        stats: dict[str, Any] = {
            "total_targets": len(targets),
            "skipped_closed": len(targets) - len(open_targets),
            "successful_deliveries": 0,
            "failed_deliveries": 0,
        }
        if not open_targets:
            return stats

        results = await asyncio.gather(
            *[conn.transport.send_text(text) for conn in open_targets],
            return_exceptions=True,
        )
        for conn, result in zip(open_targets, results, strict=True):
            if isinstance(result, Exception):
                stats["failed_deliveries"] += 1
                logger.warning(
                    "Error delivering broadcast",
                    connection_id=conn.connection_id,
                    error_type=type(result).__name__,
                    error=str(result),
                )
            else:
                stats["successful_deliveries"] += 1

        logger.debug("Broadcast delivered", **stats)
        return stats

    async def broadcast_visitor_count(self) -> dict[str, Any]:
        return await self.broadcast(f"Current visitors: {self.registry.size}")
