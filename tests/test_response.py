"""Tests for response envelopes and error formatting."""

import logging

from promo_engine.errors import AppError, ErrorSeverity, ErrorTypes, format_error, get_error_description
from promo_engine.response import handle_error, wrap_failure, wrap_success


class TestEnvelopes:

    def test_success(self):
        envelope = wrap_success(data=[1], total=1)
        assert envelope["success"] is True
        assert envelope["data"] == [1]
        assert "error" not in envelope
        assert envelope["timestamp"]

    def test_failure_from_app_error(self):
        error = AppError("bad file", ErrorTypes.FILE_SYSTEM, ErrorSeverity.HIGH, {"file_path": "x"})
        envelope = wrap_failure(error)
        assert envelope["success"] is False
        assert envelope["error"] == "bad file"
        assert envelope["errorType"] == ErrorTypes.FILE_SYSTEM
        assert envelope["errorDetails"] == {"file_path": "x"}

    def test_failure_from_plain_exception(self):
        envelope = wrap_failure(ValueError("boom"))
        assert envelope["error"] == "boom"
        assert "errorType" not in envelope

    def test_failure_without_message(self):
        assert wrap_failure(RuntimeError())["error"] == "Unknown error occurred"

    def test_handle_error_logs(self, caplog):
        log = logging.getLogger("promo_engine.test")
        with caplog.at_level(logging.ERROR, logger="promo_engine.test"):
            envelope = handle_error(KeyError("missing"), "Lookup", log)
        assert envelope["success"] is False
        assert "Lookup failed" in caplog.text


class TestErrorFormatting:

    def test_user_friendly(self):
        formatted = format_error(AppError("no such file", ErrorTypes.FILE_SYSTEM))
        assert formatted["error"] == "File access error: no such file"
        assert formatted["errorCode"] == ErrorTypes.FILE_SYSTEM
        assert formatted["suggestion"]

    def test_plain_exception_is_unknown(self):
        formatted = format_error(ZeroDivisionError("division by zero"))
        assert formatted["errorCode"] == ErrorTypes.UNKNOWN

    def test_full_dict(self):
        formatted = format_error(AppError("x", ErrorTypes.VALIDATION, ErrorSeverity.LOW), user_friendly=False)
        assert formatted["type"] == ErrorTypes.VALIDATION
        assert formatted["severity"] == ErrorSeverity.LOW
        assert formatted["name"] == "AppError"

    def test_description_fallback(self):
        assert get_error_description(ErrorTypes.NETWORK) == "Network error"
        assert get_error_description("NOPE") == "Unexpected error"
