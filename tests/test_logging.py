"""
Unit tests for logging utilities.

Tests verify:
- Logging setup and configuration
- Build-console line format
- Correlation ids and JSON records
- Function call decorator behavior
"""

import io
import json
import logging

import pytest

from ossarchiver.utils.logging import (
    JSONFormatter,
    clear_correlation_id,
    get_build_logger,
    get_correlation_id,
    get_logger,
    log_function_call,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    clear_correlation_id()
    setup_logging()


def test_setup_logging_configures_root_logger() -> None:
    """Test that setup_logging properly configures the root logger."""
    setup_logging(level="DEBUG")
    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG


def test_setup_logging_json(monkeypatch) -> None:
    """Test that LOG_FORMAT=json installs the JSON formatter."""
    monkeypatch.setenv("LOG_FORMAT", "json")
    setup_logging()
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, JSONFormatter)


def test_get_logger_returns_logger_instance() -> None:
    """Test that get_logger returns a valid logger instance."""
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test_module"


def test_build_logger_format() -> None:
    """Test build-console lines carry the archiver tag and short level names."""
    stream = io.StringIO()
    log = get_build_logger(stream, name="ossarchiver.build.test_format")

    log.info("Uploading: build/J/1/out/a.txt")
    log.warning("No artifacts matched, return")
    log.error("Publish exception")

    assert stream.getvalue().splitlines() == [
        "[OSSArchiver][INFO]Uploading: build/J/1/out/a.txt",
        "[OSSArchiver][WARN]No artifacts matched, return",
        "[OSSArchiver][ERROR]Publish exception",
    ]


def test_build_logger_includes_traceback() -> None:
    """Test exception tracebacks follow the message line."""
    stream = io.StringIO()
    log = get_build_logger(stream, name="ossarchiver.build.test_traceback")

    try:
        raise ConnectionError("reset by peer")
    except ConnectionError:
        log.warning("Upload failed: k", exc_info=True)

    output = stream.getvalue()
    assert output.startswith("[OSSArchiver][WARN]Upload failed: k\nTraceback")
    assert "ConnectionError: reset by peer" in output


def test_build_logger_replaces_stream() -> None:
    """Test calling get_build_logger again swaps the stream."""
    first, second = io.StringIO(), io.StringIO()
    get_build_logger(first, name="ossarchiver.build.test_replace")
    log = get_build_logger(second, name="ossarchiver.build.test_replace")

    log.info("hello")

    assert first.getvalue() == ""
    assert second.getvalue() == "[OSSArchiver][INFO]hello\n"


def test_correlation_id() -> None:
    """Test setting, reading and clearing the correlation id."""
    set_correlation_id("ci-app-42")
    assert get_correlation_id() == "ci-app-42"

    clear_correlation_id()
    generated = get_correlation_id()
    assert generated != "ci-app-42"
    assert get_correlation_id() == generated


def test_json_formatter_fields() -> None:
    """Test the JSON record layout."""
    set_correlation_id("ci-app-42")
    record = logging.LogRecord(
        "ossarchiver.test", logging.WARNING, __file__, 10, "Upload failed: %s", ("k",), None
    )
    record.key = "k"

    data = json.loads(JSONFormatter().format(record))

    assert data["level"] == "WARNING"
    assert data["message"] == "Upload failed: k"
    assert data["correlation_id"] == "ci-app-42"
    assert data["extra"] == {"key": "k"}


def test_log_function_call_decorator_logs_entry_and_exit(caplog) -> None:
    """Test that log_function_call decorator logs function entry and exit."""

    @log_function_call
    def sample_function(x: int, y: int) -> int:
        """Sample function for testing decorator."""
        return x + y

    with caplog.at_level(logging.DEBUG):
        result = sample_function(2, 3)

    assert result == 5
    assert "ENTER sample_function(x=2, y=3)" in caplog.text
    assert "EXIT sample_function" in caplog.text


def test_log_function_call_decorator_handles_exceptions(caplog) -> None:
    """Test that log_function_call decorator properly logs exceptions."""

    @log_function_call
    def failing_function() -> None:
        """Function that raises an exception."""
        raise ValueError("Test exception")

    with pytest.raises(ValueError, match="Test exception"):
        failing_function()

    assert "ERROR failing_function raised ValueError: Test exception" in caplog.text
