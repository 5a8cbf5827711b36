"""
Exception handlers for the HTTP surface.

HTTP errors render as {"error": <reason>} so every failure carries a
human-readable reason string. ChatroomErrors and unexpected exceptions get
the standardized error body.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from ..error_types import ErrorMessages, ErrorSeverity, ErrorType, create_standard_error_response
from ..exceptions import ChatroomError, DatabaseError, LoggedHTTPException, ValidationError
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once

logger = get_logger(__name__)


def _status_for_chatroom_error(exc: ChatroomError) -> tuple[int, ErrorType]:
    if isinstance(exc, ValidationError):
        return 400, ErrorType.VALIDATION_ERROR
    if isinstance(exc, DatabaseError):
        return 500, ErrorType.DATABASE_ERROR
    return 500, ErrorType.INTERNAL_ERROR


def register_error_handlers(app: FastAPI) -> None:
    """
    Register exception handlers on the application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        if not isinstance(exc, LoggedHTTPException):
            logger.warning("HTTP error response", status_code=exc.status_code, detail=exc.detail, path=request.url.path)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(ChatroomError)
    async def chatroom_error_handler(request: Request, exc: ChatroomError) -> JSONResponse:
        status_code, error_type = _status_for_chatroom_error(exc)
        log_exception_once(logger, "error", "Chatroom error in request", exc=exc, path=request.url.path)
        return JSONResponse(
            status_code=status_code,
            content=create_standard_error_response(
                error_type,
                exc.message,
                user_friendly=exc.user_friendly,
                details={"error_type": exc.__class__.__name__},
            ),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception in request",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=create_standard_error_response(
                ErrorType.INTERNAL_ERROR,
                ErrorMessages.INTERNAL_ERROR,
                severity=ErrorSeverity.HIGH,
            ),
        )

    logger.info("Error handlers registered")
