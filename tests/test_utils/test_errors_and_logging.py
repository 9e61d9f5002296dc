"""Tests for the exception hierarchy and structured logging helpers."""

import json
import logging

import pytest

from sentimentiq.utils.errors import (
    ConfigurationError,
    FeatureDisabledError,
    FeatureNotPermittedError,
    PersistenceError,
    ProviderError,
    SentimentIQError,
    ValidationError,
)
from sentimentiq.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    build_formatter,
    create_logger_with_context,
)


class TestErrors:
    @pytest.mark.parametrize(
        "error",
        [
            ValidationError("bad"),
            FeatureNotPermittedError("summary", "guest"),
            FeatureDisabledError("summary"),
            ProviderError("down"),
            PersistenceError("disk full"),
            ConfigurationError("missing"),
        ],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, SentimentIQError)

    def test_validation_message_is_user_facing(self):
        error = ValidationError("text must be a non-empty string", code="empty_text",
                                details={"length": 0})
        assert str(error) == "text must be a non-empty string"
        assert error.code == "empty_text"

    def test_feature_not_permitted(self):
        error = FeatureNotPermittedError("summary", "guest")
        assert isinstance(error, ValidationError)
        assert error.code == "feature_not_permitted"
        assert error.message.startswith("feature not permitted for tier")
        assert error.details == {"feature": "summary", "tier": "guest"}

    def test_provider_error_details(self):
        cause = TimeoutError("timed out")
        error = ProviderError("call failed", feature="sentiment", provider="azure",
                              original_error=cause)
        assert error.details["original_error"] == "timed out"
        assert "Details" in str(error)

    def test_persistence_operation(self):
        assert PersistenceError("x", operation="insert").details == {"operation": "insert"}


class TestLogging:
    def _record(self, **extra):
        record = logging.LogRecord("web", logging.INFO, __file__, 10, "hello %s", ("world",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(self._record()))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "web"
        assert "context" not in data

    def test_json_formatter_context(self):
        data = json.loads(JSONFormatter().format(self._record(context={"path": "/health"})))
        assert data["context"] == {"path": "/health"}
        assert data["service"] == "sentimentiq"

    def test_credentials_redacted(self):
        record = self._record(context={"api_key": "abc123", "provider": "azure"})
        data = json.loads(JSONFormatter().format(record))
        assert data["context"] == {"api_key": "***", "provider": "azure"}

    @pytest.mark.parametrize("log_format, colored, expected", [
        ("json", True, JSONFormatter),
        ("text", True, ColoredFormatter),
    ])
    def test_build_formatter(self, log_format, colored, expected):
        assert isinstance(build_formatter(log_format, colored=colored), expected)

    def test_colored_formatter_restores_level(self):
        record = self._record()
        ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert record.levelname == "INFO"

    def test_logger_with_context_merges_extra(self, caplog):
        logger = create_logger_with_context("web.test", {"path": "/api/history"})
        with caplog.at_level(logging.INFO, logger="web.test"):
            logger.info("listing", extra={"context": {"count": 3}})
        assert caplog.records[-1].context == {"path": "/api/history", "count": 3}
