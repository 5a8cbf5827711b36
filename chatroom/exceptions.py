"""
Exception hierarchy for the chatroom server.

Protocol and validation errors are reported to the requesting party only;
store errors are logged and treated as failed-but-non-fatal; transport errors
lead to the normal close transition. Every ChatroomError logs itself with its
context when raised, so handlers further up use log_exception_once() to avoid
logging it a second time.
"""

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fastapi import HTTPException

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """
    Contextual information for error handling.

    Provides structured context for error reporting and debugging.
    """

    connection_id: str | None = None
    username: str | None = None
    remote_address: str | None = None
    request_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "connection_id": self.connection_id,
            "username": self.username,
            "remote_address": self.remote_address,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class LoggedException(Exception):
    """Exception that remembers whether it has already been logged."""

    def __init__(self, *args: Any, already_logged: bool = False) -> None:
        super().__init__(*args)
        self.already_logged = already_logged

    def mark_logged(self) -> None:
        """Mark the exception as logged."""
        self.already_logged = True


class ChatroomError(LoggedException):
    """
    Base exception for all chatroom errors.

    Carries a technical message, a user-friendly message and structured
    context for logging and API responses.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize chatroom error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now(UTC)

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with structured context."""
        logger.error(
            "Chatroom error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )
        self.mark_logged()

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class DatabaseError(ChatroomError):
    """Message store operation errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        operation: str = "unknown",
        table: str | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.operation = operation
        self.table = table
        self.details["operation"] = operation
        if table:
            self.details["table"] = table


class ValidationError(ChatroomError):
    """Request validation errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        field: str | None = None,  # pylint: disable=redefined-outer-name
        value: Any | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.field = field
        self.value = value
        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = str(value)


class DuplicateNameError(ChatroomError):
    """A username is already held by another authenticated connection."""

    def __init__(self, username: str, context: ErrorContext | None = None, **kwargs):
        kwargs.setdefault("user_friendly", "Username already in use, please choose a different name.")
        super().__init__(f"Username already in use: {username}", context, **kwargs)
        self.username = username
        self.details["username"] = username


class ConnectionNotFoundError(ChatroomError):
    """No authenticated connection holds the requested username."""

    def __init__(self, username: str, context: ErrorContext | None = None, **kwargs):
        kwargs.setdefault("user_friendly", "Active client with the old username not found.")
        super().__init__(f"No active connection for username: {username}", context, **kwargs)
        self.username = username
        self.details["username"] = username


class TransportError(ChatroomError):
    """Transport-level send or receive failures."""

    def __init__(self, message: str, context: ErrorContext | None = None, connection_type: str = "websocket", **kwargs):
        super().__init__(message, context, **kwargs)
        self.connection_type = connection_type
        self.details["connection_type"] = connection_type


class ConfigurationError(ChatroomError):
    """Configuration and setup errors."""

    def __init__(self, message: str, context: ErrorContext | None = None, config_key: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.config_key = config_key
        if config_key:
            self.details["config_key"] = config_key


class LoggedHTTPException(HTTPException, LoggedException):
    """HTTPException that logs itself, with context, exactly once."""

    def __init__(
        self,
        status_code: int,
        detail: Any = None,
        context: ErrorContext | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        HTTPException.__init__(self, status_code=status_code, detail=detail, headers=headers)
        self.already_logged = False
        self.context = context or ErrorContext()
        log_method = logger.error if status_code >= 500 else logger.warning
        log_method(
            "HTTP error response",
            status_code=status_code,
            detail=detail,
            context=self.context.to_dict(),
        )
        self.mark_logged()


def create_error_context(**kwargs) -> ErrorContext:
    """
    Create an error context with the given parameters.

    Args:
        **kwargs: Context parameters

    Returns:
        ErrorContext object
    """
    return ErrorContext(**kwargs)


def handle_exception(exc: Exception, context: ErrorContext | None = None) -> ChatroomError:
    """
    Convert a generic exception to a chatroom error.

    Args:
        exc: The original exception
        context: Error context

    Returns:
        ChatroomError instance
    """
    if isinstance(exc, ChatroomError):
        return exc

    if isinstance(exc, ValueError | TypeError):
        return ValidationError(str(exc), context, details={"original_type": type(exc).__name__})
    if isinstance(exc, ConnectionError | TimeoutError):
        return TransportError(str(exc), context, details={"original_type": type(exc).__name__})
    return ChatroomError(
        str(exc), context, details={"original_type": type(exc).__name__, "traceback": traceback.format_exc()}
    )
