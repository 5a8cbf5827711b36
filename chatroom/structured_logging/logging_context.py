"""
Context management utilities for structured logging.

Each chat connection runs in its own asyncio task, and structlog contextvars
are task-local, so binding the connection identity here tags every log line
a session emits without passing it through each call.
"""

from typing import Any

from structlog.contextvars import bind_contextvars, clear_contextvars, get_contextvars, unbind_contextvars


def bind_connection_context(
    connection_id: str,
    remote_address: str | None = None,
    username: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Bind connection context to the current logging context.

    Args:
        connection_id: Registry identifier of the connection
        remote_address: Peer address captured when the connection opened
        username: Claimed display name, once authenticated
        **kwargs: Additional context variables
    """
    context_vars = {
        "connection_id": connection_id,
        "remote_address": remote_address,
        "username": username,
        **kwargs,
    }

    # Remove None values
    context_vars = {k: v for k, v in context_vars.items() if v is not None}

    bind_contextvars(**context_vars)


def bind_username(username: str) -> None:
    """Attach the claimed username to the current connection context."""
    bind_contextvars(username=username)


def clear_connection_context() -> None:
    """Clear the connection context from logging."""
    unbind_contextvars("connection_id", "remote_address", "username")


def clear_all_context() -> None:
    """Clear every bound context variable."""
    clear_contextvars()


def get_current_context() -> dict[str, Any]:
    """Get the current logging context."""
    return dict(get_contextvars())
