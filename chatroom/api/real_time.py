"""
Real-time API endpoints for the chatroom server.

The chat WebSocket is served at the site root, where the browser client
connects, and at /ws.
"""

from fastapi import APIRouter, WebSocket

from ..realtime.websocket_handler import handle_websocket_connection
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_context_from_websocket

logger = get_logger(__name__)

realtime_router = APIRouter(tags=["realtime"])

SERVICE_UNAVAILABLE_CLOSE_CODE = 1013


@realtime_router.websocket("/")
@realtime_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Run one chat session over this WebSocket."""
    container = getattr(websocket.app.state, "container", None)
    if container is None:
        context = create_context_from_websocket(websocket)
        logger.error("Chat container unavailable for WebSocket", context=context.to_dict())
        await websocket.accept()
        await websocket.close(code=SERVICE_UNAVAILABLE_CLOSE_CODE)
        return

    await handle_websocket_connection(websocket, container)
