"""
WebSocket connection handling for the chat room.

Accepts the socket, wraps it in a transport, and runs one ChatSession over
it until the peer goes away. Every exit path runs the session's close
transition.
"""

from typing import TYPE_CHECKING

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once
from ..structured_logging.logging_context import clear_connection_context
from .transport import WebSocketTransport

if TYPE_CHECKING:
    from ..container import ChatContainer

logger = get_logger(__name__)

SERVICE_RESTART_CLOSE_CODE = 1012


async def handle_websocket_connection(websocket: WebSocket, container: "ChatContainer") -> None:
    """
    Run a chat session over an incoming WebSocket.

    Args:
        websocket: The not-yet-accepted WebSocket
        container: Application container holding the shared components
    """
    await websocket.accept()
    transport = WebSocketTransport(websocket)

    if container.is_shutting_down:
        logger.info("Rejecting connection during shutdown", remote_address=transport.remote_address)
        await transport.close(code=SERVICE_RESTART_CLOSE_CODE, reason="Server shutting down")
        return

    session = container.create_session(transport)
    try:
        await session.open()
        while True:
            text = await transport.receive_text()
            await session.handle_message(text)
    except WebSocketDisconnect as e:
        logger.info("WebSocket disconnected", close_code=e.code)
    except Exception as e:  # pylint: disable=broad-except  # any failure ends this connection only
        session.handle_error(e)
    finally:
        try:
            await session.close()
        except Exception as e:  # pylint: disable=broad-except  # close must not fail other connections
            log_exception_once(logger, "error", "Error closing chat session", exc=e, exc_info=True)
        finally:
            container.release_session(session)
            clear_connection_context()
