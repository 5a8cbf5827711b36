"""
Transport adapter for chat connections.

The session logic talks to a ChatTransport rather than a Starlette WebSocket
so it can be driven by an in-process fake in tests. A closed peer is always
reported as starlette's WebSocketDisconnect, whichever transport is in use.
"""

import asyncio
from typing import Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

from ..exceptions import TransportError, create_error_context
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

UNKNOWN_ADDRESS = "unknown"
CLOSE_TIMEOUT_SECONDS = 2.0


class ChatTransport(Protocol):
    """A bidirectional text-frame channel to one client."""

    @property
    def remote_address(self) -> str: ...

    def is_open(self) -> bool: ...

    async def send_text(self, text: str) -> None: ...

    async def receive_text(self) -> str: ...

    async def ping(self) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...


class WebSocketTransport:
    """ChatTransport backed by an accepted Starlette WebSocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        client = websocket.client
        self._remote_address = client.host if client is not None and client.host else UNKNOWN_ADDRESS

    @property
    def remote_address(self) -> str:
        return self._remote_address

    def is_open(self) -> bool:
        try:
            return (
                self.websocket.client_state == WebSocketState.CONNECTED
                and self.websocket.application_state == WebSocketState.CONNECTED
            )
        except (AttributeError, ValueError, TypeError):
            return False

    def _transport_error(self, operation: str, exc: Exception) -> TransportError:
        context = create_error_context(remote_address=self._remote_address)
        context.metadata["operation"] = operation
        return TransportError(
            f"WebSocket {operation} failed: {exc}",
            context,
            details={"original_type": type(exc).__name__},
        )

    async def send_text(self, text: str) -> None:
        """
        Send one text frame.

        Raises:
            WebSocketDisconnect: The peer has gone away
            TransportError: The socket refused the frame for any other reason
        """
        try:
            await self.websocket.send_text(text)
        except (RuntimeError, OSError) as e:
            raise self._transport_error("send", e) from e

    async def receive_text(self) -> str:
        """
        Wait for the next frame and return it as text.

        Binary frames are decoded as UTF-8 with replacement; a disconnect
        message raises WebSocketDisconnect.
        """
        message = await self.websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(code=message.get("code", 1000), reason=message.get("reason"))
        text = message.get("text")
        if text is not None:
            return text
        data = message.get("bytes") or b""
        return data.decode("utf-8", errors="replace")

    async def ping(self) -> None:
        """
        Send a liveness probe.

        ASGI exposes no control-frame ping, so the probe is an empty binary
        frame; the browser client ignores non-text frames.
        """
        try:
            await self.websocket.send_bytes(b"")
        except (RuntimeError, OSError) as e:
            raise self._transport_error("ping", e) from e

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if not self.is_open():
            return
        try:
            await asyncio.wait_for(self.websocket.close(code=code, reason=reason), timeout=CLOSE_TIMEOUT_SECONDS)
        except (RuntimeError, TimeoutError, WebSocketDisconnect) as e:
            logger.debug("WebSocket already closing", remote_address=self._remote_address, error=str(e))
