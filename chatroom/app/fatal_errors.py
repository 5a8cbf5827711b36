"""
Process-level fault handling.

An unhandled fault leaves the server in an unknown state, so it is logged at
critical level and the process exits with status 1 instead of carrying on.
"""

import asyncio
import logging
import os
import sys
from types import TracebackType
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

FATAL_EXIT_CODE = 1


def _terminate() -> None:
    logging.shutdown()
    os._exit(FATAL_EXIT_CODE)  # pylint: disable=protected-access


def fatal_loop_exception_handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Event loop exception handler: log the fault and terminate."""
    exc = context.get("exception")
    logger.critical(
        "Unhandled fault in event loop, terminating",
        loop_message=context.get("message"),
        error_type=type(exc).__name__ if exc else None,
        error=str(exc) if exc else None,
        exc_info=exc,
    )
    _terminate()


def fatal_excepthook(
    exc_type: type[BaseException], exc: BaseException, traceback: TracebackType | None
) -> None:
    """sys.excepthook replacement: log the fault and terminate."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, traceback)
        return
    logger.critical(
        "Unhandled exception, terminating",
        error_type=exc_type.__name__,
        error=str(exc),
        exc_info=(exc_type, exc, traceback),
    )
    _terminate()


def install_fatal_loop_handler(loop: asyncio.AbstractEventLoop | None = None) -> None:
    target = loop or asyncio.get_running_loop()
    target.set_exception_handler(fatal_loop_exception_handler)
    logger.debug("Fatal event loop exception handler installed")


def install_fatal_excepthook() -> None:
    sys.excepthook = fatal_excepthook
