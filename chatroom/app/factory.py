"""
FastAPI application factory for the chatroom server.

This module handles FastAPI app creation, middleware configuration,
and router registration.
"""

from fastapi import FastAPI

from .. import __version__
from ..api.names import names_router
from ..api.real_time import realtime_router
from ..api.static import static_router
from ..config import get_config
from ..config.models import AppConfig
from ..middleware.error_handling import register_error_handlers
from ..middleware.request_logging import RequestLoggingMiddleware
from ..structured_logging.enhanced_logging_config import get_logger
from .lifespan import lifespan

logger = get_logger(__name__)


def create_app(config: AppConfig | None = None, *, exit_on_fatal_error: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration; loaded with get_config() if omitted
        exit_on_fatal_error: Install the event loop handler that terminates
            the process on an unhandled fault

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title="Chatroom",
        description="Single-room WebSocket chat server",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config or get_config()
    app.state.exit_on_fatal_error = exit_on_fatal_error

    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    app.include_router(static_router)
    app.include_router(names_router)
    app.include_router(realtime_router)

    logger.info("FastAPI application created", static_dir=app.state.config.server.static_dir)
    return app
