"""
Centralized error types and constants for the chatroom server.

Standardized error types and messages keep the HTTP surface and the chat
session reporting failures the same way.
"""

from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Standardized error types for consistent categorization."""

    # Validation
    VALIDATION_ERROR = "validation_error"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_FORMAT = "invalid_format"

    # Presence and naming
    USERNAME_TAKEN = "username_taken"
    CONNECTION_NOT_FOUND = "connection_not_found"

    # Store
    DATABASE_ERROR = "database_error"

    # Transport
    WEBSOCKET_ERROR = "websocket_error"
    MESSAGE_PROCESSING_ERROR = "message_processing_error"

    # System
    CONFIGURATION_ERROR = "configuration_error"
    INTERNAL_ERROR = "internal_error"


class ErrorSeverity(Enum):
    """Error severity levels for logging and handling."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorMessages:  # pylint: disable=too-few-public-methods
    """Human-readable reasons returned to clients."""

    MISSING_NAMES = "Missing oldName or newName."
    USERNAME_TAKEN = "Username already in use, please choose a different name."
    CONNECTION_NOT_FOUND = "Active client with the old username not found."
    DATABASE_UPDATE_FAILED = "Error updating username in database."
    INTERNAL_ERROR = "An internal error occurred."
    INDEX_NOT_FOUND = "Chat client page is not available."
    USERNAME_UPDATED = "Username updated successfully."


def create_standard_error_response(
    error_type: ErrorType,
    message: str,
    user_friendly: str | None = None,
    details: dict[str, Any] | None = None,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
) -> dict[str, Any]:
    """
    Create a standardized error response body.

    Args:
        error_type: Type of error
        message: Technical error message
        user_friendly: User-friendly error message
        details: Additional error details
        severity: Error severity level

    Returns:
        Standardized error response dictionary
    """
    return {
        "error": {
            "type": error_type.value,
            "message": message,
            "user_friendly": user_friendly or message,
            "details": details or {},
            "severity": severity.value,
        }
    }
