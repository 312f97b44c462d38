"""
Error Types and Application Errors
==================================
Categorized errors shared by every pipeline entry point.

Each category carries a stable machine-readable tag (e.g. VALIDATION_ERROR)
that the response envelope surfaces as ``errorType``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ErrorTypes:
    """Stable error-kind tags."""
    VALIDATION = "VALIDATION_ERROR"
    CONFIGURATION = "CONFIGURATION_ERROR"
    API = "API_ERROR"
    FILE_SYSTEM = "FILE_SYSTEM_ERROR"
    NETWORK = "NETWORK_ERROR"
    PROCESSING = "PROCESSING_ERROR"
    UNKNOWN = "UNKNOWN_ERROR"


class ErrorSeverity:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# User-facing prefix and suggestion per error type
ERROR_MESSAGES = {
    ErrorTypes.VALIDATION: (
        "Invalid input",
        "Please check your data and try again."
    ),
    ErrorTypes.CONFIGURATION: (
        "Configuration issue",
        "Please verify your settings and environment variables."
    ),
    ErrorTypes.API: (
        "External service error",
        "The service is temporarily unavailable. Please try again later."
    ),
    ErrorTypes.FILE_SYSTEM: (
        "File access error",
        "Please check file permissions and paths."
    ),
    ErrorTypes.NETWORK: (
        "Network error",
        "Please check your internet connection and try again."
    ),
    ErrorTypes.PROCESSING: (
        "Processing error",
        "The operation could not be completed. Please try again."
    ),
    ErrorTypes.UNKNOWN: (
        "Unexpected error",
        "An unexpected error occurred. Please contact support if this persists."
    ),
}


class AppError(Exception):
    """Error with a category, severity and structured details."""

    def __init__(
        self,
        message: str,
        error_type: str = ErrorTypes.UNKNOWN,
        severity: str = ErrorSeverity.MEDIUM,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.type = error_type
        self.severity = severity
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": type(self).__name__,
            "message": self.message,
            "type": self.type,
            "severity": self.severity,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class RecordError(ValueError):
    """A single raw row/object could not be normalized into a record."""


def get_error_description(error_type: str) -> str:
    """Get the human-readable prefix for an error type."""
    prefix, _ = ERROR_MESSAGES.get(error_type, ERROR_MESSAGES[ErrorTypes.UNKNOWN])
    return prefix


def format_error(error: BaseException, user_friendly: bool = True) -> Dict[str, Any]:
    """
    Render any exception as a dictionary.

    Args:
        error: The exception to render
        user_friendly: If True, return {error, suggestion, errorCode, timestamp};
            otherwise the full AppError dictionary

    Returns:
        Dictionary describing the error
    """
    if not isinstance(error, AppError):
        error = AppError(
            str(error) or "An unexpected error occurred",
            ErrorTypes.UNKNOWN,
            ErrorSeverity.HIGH,
            {"original_error": repr(error)}
        )

    if not user_friendly:
        return error.to_dict()

    prefix, suggestion = ERROR_MESSAGES.get(error.type, ERROR_MESSAGES[ErrorTypes.UNKNOWN])
    return {
        "error": f"{prefix}: {error.message}",
        "suggestion": suggestion,
        "errorCode": error.type,
        "timestamp": error.timestamp,
    }
