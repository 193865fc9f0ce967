"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from reader.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
    request_id_var,
)


def _record(msg="Test message", level=logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_rule_context_fields(self):
        """Context fields are promoted to the top level."""
        record = _record("Action failed")
        record.rule_name = "cleanup"
        record.article_id = 42
        record.action = "mark_read"
        record.filter_id = None

        data = json.loads(JSONFormatter().format(record))

        assert data["rule_name"] == "cleanup"
        assert data["article_id"] == 42
        assert data["action"] == "mark_read"
        assert "filter_id" not in data

    def test_extra_fields(self):
        record = _record()
        record.batch_size = 500

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"]["batch_size"] == 500

    def test_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        exception_text = "".join(data["exception"])
        assert "ValueError" in exception_text
        assert "Test error" in exception_text

    def test_unicode(self):
        data = json.loads(JSONFormatter().format(_record("Filtre enregistré ✓")))
        assert data["message"] == "Filtre enregistré ✓"


class TestContextFilter:
    """Test context filter for adding default fields."""

    def test_adds_default_fields(self):
        record = _record()

        assert ContextFilter().filter(record) is True
        for field in ("request_id", "path", "method", "status_code", "duration_ms",
                      "filter_id", "rule_name", "article_id", "action"):
            assert hasattr(record, field)

    def test_preserves_existing_values(self):
        record = _record()
        record.filter_id = 7

        ContextFilter().filter(record)

        assert record.filter_id == 7

    def test_request_id_from_context_variable(self):
        token = request_id_var.set("req-123")
        try:
            record = _record()
            ContextFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "req-123"


class TestLoggingConfig:
    """Test dictConfig generation."""

    def test_text_format(self):
        with patch("reader.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "debug"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "standard"
        assert config["loggers"]["reader"]["level"] == "DEBUG"

    def test_json_format(self):
        with patch("reader.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "JSON"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["()"] == "reader.app.core.logging.JSONFormatter"

    def test_structured_format(self):
        with patch("reader.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert "rule_name" in config["formatters"]["structured"]["format"]


class TestHelpers:
    """Test get_logger and get_log_context."""

    def test_get_logger(self):
        assert get_logger("reader.test").name == "reader.test"
        assert get_logger().name == "reader"

    def test_log_context_drops_none(self):
        context = get_log_context(rule_name="cleanup", article_id=3, action=None)
        assert context == {"rule_name": "cleanup", "article_id": 3}
