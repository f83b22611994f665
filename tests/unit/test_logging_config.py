"""
Tests for structured JSON logging configuration.

This module tests:
- JSONFormatter (JSON log output)
- setup_logging() (logging configuration)
- log_with_context() (structured extras)

Tests follow AAA (Arrange, Act, Assert) pattern.
"""

import io
import json
import logging

import pytest

from datarepo.core.config import settings
from datarepo.core.logging_config import (
    JSONFormatter,
    get_logger,
    log_with_context,
    setup_logging,
)


@pytest.fixture
def json_logger():
    """Logger writing JSON lines into a StringIO."""
    logger = logging.getLogger("datarepo.tests.json")
    logger.setLevel(logging.DEBUG)
    logger.handlers = []
    logger.propagate = False

    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers = []
    logger.propagate = True


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way setup_logging() found it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_basic_message(self, json_logger):
        """
        Test JSONFormatter outputs valid JSON.

        Arrange: Logger with JSONFormatter
        Act: Log a message
        Assert: Output is valid JSON with required fields
        """
        # Arrange
        logger, stream = json_logger

        # Act
        logger.info("Test message")

        # Assert
        log_data = json.loads(stream.getvalue().strip())
        assert log_data["level"] == "INFO"
        assert log_data["message"] == "Test message"
        assert log_data["logger"] == "datarepo.tests.json"
        assert "timestamp" in log_data

    def test_repository_fields(self, json_logger):
        logger, stream = json_logger

        logger.debug(
            "Committed pending changes",
            extra={"operation": "commit", "affected": 3, "latency_ms": 1.5, "entity": "Book"}
        )

        log_data = json.loads(stream.getvalue().strip())
        assert log_data["operation"] == "commit"
        assert log_data["affected"] == 3
        assert log_data["latency_ms"] == 1.5
        assert log_data["entity"] == "Book"

    def test_arbitrary_extra_fields(self, json_logger):
        logger, stream = json_logger

        logger.info("batch", extra={"count": 7})

        assert json.loads(stream.getvalue().strip())["count"] == 7

    def test_exception_included(self, json_logger):
        logger, stream = json_logger

        try:
            raise ValueError("bad include")
        except ValueError:
            logger.exception("failed")

        log_data = json.loads(stream.getvalue().strip())
        assert "ValueError: bad include" in log_data["exception"]

    def test_non_serializable_extra_falls_back_to_str(self, json_logger):
        logger, stream = json_logger

        logger.info("object", extra={"thing": object()})

        assert "object object at" in json.loads(stream.getvalue().strip())["thing"]


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_json_handler_installed(self, restore_root_logger):
        # Act
        setup_logging(level="DEBUG", json_format=True)

        # Assert
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_plain_formatter(self, restore_root_logger):
        setup_logging(level="warning", json_format=False)

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_defaults_to_info(self, restore_root_logger):
        setup_logging(level="chatty")

        assert logging.getLogger().level == logging.INFO

    def test_sqlalchemy_engine_quieted(self, restore_root_logger):
        setup_logging(level="DEBUG")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_defaults_come_from_settings(self, restore_root_logger, monkeypatch):
        """
        Test setup_logging() without arguments follows DATAREPO_LOG_* settings.

        Arrange: Settings asking for ERROR level and plain text
        Act: setup_logging() with no arguments
        Assert: Root level and formatter match the settings
        """
        # Arrange
        monkeypatch.setattr(settings, "log_level", "ERROR")
        monkeypatch.setattr(settings, "log_json", False)

        # Act
        setup_logging()

        # Assert
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_explicit_arguments_override_settings(self, restore_root_logger, monkeypatch):
        monkeypatch.setattr(settings, "log_level", "ERROR")

        setup_logging(level="DEBUG", json_format=True)

        assert logging.getLogger().level == logging.DEBUG
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)


class TestLogWithContext:
    """Tests for log_with_context()."""

    def test_only_given_fields_added(self, json_logger):
        logger, stream = json_logger

        log_with_context(logger, "info", "Staged", entity="Tag", operation="add", note="x")

        log_data = json.loads(stream.getvalue().strip())
        assert log_data["entity"] == "Tag"
        assert log_data["operation"] == "add"
        assert log_data["note"] == "x"
        assert "affected" not in log_data
        assert "latency_ms" not in log_data

    def test_get_logger_returns_named_logger(self):
        assert get_logger("datarepo.x") is logging.getLogger("datarepo.x")
