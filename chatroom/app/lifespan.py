"""Application lifecycle management for the chatroom server.

Startup builds the ChatContainer and stores it on app.state.container.
Shutdown closes every connection before the store (see
ChatContainer.shutdown).
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..config import get_config
from ..container import ChatContainer
from ..structured_logging.enhanced_logging_config import get_logger
from .fatal_errors import install_fatal_loop_handler

logger = get_logger("chatroom.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Reads the config the factory put on app.state (falling back to
    get_config()), and installs the fatal loop handler unless the factory
    disabled it.
    """
    config = getattr(app.state, "config", None) or get_config()
    logger.info("Starting chatroom server...")

    container = ChatContainer(config)
    await container.initialize()
    app.state.container = container

    if getattr(app.state, "exit_on_fatal_error", True):
        install_fatal_loop_handler(asyncio.get_running_loop())

    logger.info("Chatroom server started", host=config.server.host, port=config.server.port)
    try:
        yield
    finally:
        logger.info("Shutting down chatroom server...")
        try:
            await container.shutdown()
        except (asyncio.CancelledError, KeyboardInterrupt) as e:
            logger.warning("Shutdown interrupted", error=str(e), error_type=type(e).__name__)
            raise
        logger.info("Chatroom server stopped")
