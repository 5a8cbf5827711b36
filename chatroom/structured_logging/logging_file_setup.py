"""
File logging setup for the structured logging system.

Structlog renders each event to a string and hands it to the standard library
logging tree; the handlers configured here decide where those strings land.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_HANDLER_MARKER = "_chatroom_handler"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


def detect_environment() -> str:
    """
    Detect the current environment.

    Returns:
        "unit_test" under pytest, otherwise LOGGING_ENVIRONMENT or "development"
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return "unit_test"
    return os.getenv("LOGGING_ENVIRONMENT", "development")


def resolve_log_base(log_base: str) -> Path:
    """
    Resolve log_base to an absolute path.

    Relative paths are resolved against the current working directory.
    """
    log_path = Path(log_base)
    if log_path.is_absolute():
        return log_path
    return Path.cwd() / log_path


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def remove_managed_handlers(root_logger: logging.Logger | None = None) -> None:
    """Remove and close handlers previously installed by this module."""
    root_logger = root_logger or logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root_logger.removeHandler(handler)
            handler.close()


def setup_console_logging(log_level: str) -> None:
    """Install the console handler on the root logger."""
    root_logger = logging.getLogger()
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(log_level.upper())
    console.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(_tag(console))
    root_logger.setLevel(log_level.upper())


def setup_file_logging(environment: str, log_config: dict[str, Any], log_level: str) -> Path:
    """
    Install rotating file handlers for server.log and errors.log.

    Args:
        environment: Environment name, used as the log subdirectory
        log_config: Logging configuration dictionary
        log_level: Minimum level written to server.log

    Returns:
        The directory the log files are written to
    """
    env_log_dir = resolve_log_base(log_config.get("log_base", "logs")) / environment
    env_log_dir.mkdir(parents=True, exist_ok=True)

    max_bytes = int(log_config.get("max_bytes", DEFAULT_MAX_BYTES))
    backup_count = int(log_config.get("backup_count", DEFAULT_BACKUP_COUNT))
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root_logger = logging.getLogger()

    server_handler = RotatingFileHandler(
        env_log_dir / "server.log", maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    server_handler.setLevel(log_level.upper())
    server_handler.setFormatter(formatter)
    root_logger.addHandler(_tag(server_handler))

    errors_handler = RotatingFileHandler(
        env_log_dir / "errors.log", maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    errors_handler.setLevel(logging.ERROR)
    errors_handler.setFormatter(formatter)
    root_logger.addHandler(_tag(errors_handler))

    return env_log_dir
