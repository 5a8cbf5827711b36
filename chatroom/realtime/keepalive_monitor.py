"""
Keep-alive monitoring for chat connections.

Sends a liveness probe to every open connection on a fixed interval. The
monitor never evicts anything: dead peers are reaped by the transport's own
timeout, which then runs the normal session close.
"""

import asyncio
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger
from .connection_registry import ConnectionRegistry

logger = get_logger(__name__)


class KeepAliveMonitor:
    """Background task that pings every open connection."""

    def __init__(self, registry: ConnectionRegistry, interval: float = 30.0) -> None:
        """
        Initialize the keep-alive monitor.

        Args:
            registry: Registry whose connections are probed
            interval: Seconds between probe rounds
        """
        self.registry = registry
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def ping_all(self) -> dict[str, int]:
        """Probe every open connection once and return probe statistics."""
        targets = [conn for conn in self.registry.snapshot() if conn.is_open()]
        results = await asyncio.gather(*[conn.transport.ping() for conn in targets], return_exceptions=True)
        failed = 0
        for conn, result in zip(targets, results, strict=True):
            if isinstance(result, Exception):
                failed += 1
                logger.debug(
                    "Keep-alive probe failed",
                    connection_id=conn.connection_id,
                    error_type=type(result).__name__,
                    error=str(result),
                )
        stats = {"probed": len(targets), "failed": failed}
        logger.debug("Keep-alive round complete", **stats)
        return stats

    async def run(self) -> None:
        """Probe loop; runs until cancelled."""
        logger.info("Starting keep-alive monitor", interval_seconds=self.interval)
        try:
            while True:
                await asyncio.sleep(self.interval)
                await self.ping_all()
        except asyncio.CancelledError:
            logger.info("Keep-alive monitor cancelled")
            raise

    def start(self) -> None:
        """Start the probe task on the running loop."""
        if self.is_running:
            logger.warning("Keep-alive monitor already running")
            return
        self._task = asyncio.create_task(self.run(), name="keepalive_monitor")

    async def stop(self) -> None:
        """Cancel the probe task and wait for it to finish. Safe to call twice."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:  # pylint: disable=broad-except  # task already logged its own failure
            logger.warning("Keep-alive monitor stopped with error", error=str(e))

    def get_stats(self) -> dict[str, Any]:
        return {"running": self.is_running, "interval_seconds": self.interval}
