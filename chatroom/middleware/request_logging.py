"""
Request logging middleware for the chatroom server.

Pure ASGI middleware: HTTP requests are logged at start and completion with
their status and duration. WebSocket scopes pass straight through; chat
sessions log for themselves.
"""

import time
import uuid

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware:
    """Logs every HTTP request and attaches a request id to its state."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        request_id = str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        start_time = time.time()

        logger.info(
            "HTTP request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        )

        status_code = 500

        async def send_with_logging(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
            await send(message)

        try:
            await self.app(scope, receive, send_with_logging)
        except Exception as e:
            logger.error(
                "HTTP request failed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                error=str(e),
                process_time=round(time.time() - start_time, 4),
            )
            raise

        log_method = logger.warning if status_code >= 400 else logger.info
        log_method(
            "HTTP request completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            process_time=round(time.time() - start_time, 4),
        )
