"""
Chatroom Server - Main Application Entry Point

Loads configuration, sets up logging before any other logger is created,
installs the fatal-fault hook, and serves the application with uvicorn.
Uvicorn handles termination signals: it stops accepting, closes open
connections and then runs the lifespan shutdown.

    python -m chatroom.main
"""

import uvicorn

from .app.factory import create_app
from .app.fatal_errors import install_fatal_excepthook
from .config import get_config
from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging


def main() -> None:
    """Main entry point for the chatroom server."""
    config = get_config()
    setup_enhanced_logging(config.to_legacy_dict())
    install_fatal_excepthook()

    logger = get_logger(__name__)
    logger.info("Logging setup completed", environment=config.logging.environment)

    app = create_app(config)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        # Protocol-level pings alongside the keep-alive monitor's probes
        ws_ping_interval=config.chat.keepalive_interval,
        log_config=None,  # Use our StructLog system for all logging
        access_log=True,
        use_colors=False,
    )


if __name__ == "__main__":
    main()
