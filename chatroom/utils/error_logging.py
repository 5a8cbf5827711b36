"""
Error context helpers for the request surfaces.

Builds ErrorContext objects from HTTP requests and WebSockets so HTTP errors
are logged with where they came from.
"""

from fastapi import Request, WebSocket

from ..exceptions import ErrorContext


def create_context_from_request(request: Request | None) -> ErrorContext:
    """
    Create error context from a FastAPI request.

    Args:
        request: FastAPI request object (can be None for testing)

    Returns:
        ErrorContext with request information
    """
    if request is None:
        return ErrorContext(metadata={"path": "unknown", "method": "unknown"})

    request_id = getattr(request.state, "request_id", None)
    return ErrorContext(
        request_id=request_id,
        remote_address=request.client.host if request.client else None,
        metadata={
            "path": request.url.path,
            "method": request.method,
            "user_agent": request.headers.get("user-agent", ""),
            "content_type": request.headers.get("content-type", ""),
        },
    )


def create_context_from_websocket(websocket: WebSocket | None) -> ErrorContext:
    """Create error context from a WebSocket handshake."""
    if websocket is None:
        return ErrorContext(metadata={"path": "unknown", "connection_type": "websocket"})
    return ErrorContext(
        remote_address=websocket.client.host if websocket.client else None,
        metadata={"path": websocket.url.path, "connection_type": "websocket"},
    )
