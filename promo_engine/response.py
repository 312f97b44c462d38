"""
Response Envelope
Uniform success/failure wrapper returned by every pipeline entry point.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from .errors import AppError


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def wrap_success(**fields: Any) -> Dict[str, Any]:
    """Envelope for a successful call: success flag, timestamp, then ``fields``."""
    envelope = {"success": True, "timestamp": _timestamp()}
    envelope.update(fields)
    return envelope


def wrap_failure(error: BaseException) -> Dict[str, Any]:
    """
    Envelope for a failed call.

    Categorized errors (AppError) also carry ``errorType`` and
    ``errorDetails``; anything else surfaces only its message.
    """
    envelope = {
        "success": False,
        "timestamp": _timestamp(),
        "error": str(error) or "Unknown error occurred",
    }
    if isinstance(error, AppError):
        envelope["errorType"] = error.type
        envelope["errorDetails"] = error.details
    return envelope


def handle_error(error: BaseException, operation: str, log: logging.Logger) -> Dict[str, Any]:
    """Log a failed operation with its traceback and return the failure envelope."""
    log.error("%s failed: %s", operation, error, exc_info=error)
    return wrap_failure(error)
