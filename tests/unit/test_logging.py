"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
import logging.handlers
from io import StringIO
from pathlib import Path
from typing import Any

import pytest
import structlog

from taskledger.config import LoggingConfig
from taskledger.logging import (
    add_correlation_id,
    bind_actor_context,
    get_correlation_id,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Reset logging configuration before each test."""
    root = logging.getLogger()
    root.handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)


@pytest.fixture
def capture_stream() -> StringIO:
    return StringIO()


@pytest.fixture
def json_config() -> LoggingConfig:
    return LoggingConfig(level="INFO", format="json", file=None)


@pytest.fixture
def console_config() -> LoggingConfig:
    return LoggingConfig(level="DEBUG", format="console", file=None)


def test_json_output_format(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """JSON format produces one parseable object per event."""
    setup_logging(json_config, stream=capture_stream)

    logger = structlog.get_logger("test.module")
    logger.info("entity_saved", table="tasks", entity_id=42)

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["event"] == "entity_saved"
    assert log_entry["table"] == "tasks"
    assert log_entry["entity_id"] == 42
    assert log_entry["level"] == "info"
    assert log_entry["logger"] == "test.module"
    assert "timestamp" in log_entry


def test_console_output_format(console_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Console format is human-readable rather than JSON."""
    setup_logging(console_config, stream=capture_stream)

    logger = structlog.get_logger("test.module")
    logger.debug("status_transition", new_status="DONE")

    output = capture_stream.getvalue()
    assert "status_transition" in output
    assert "DONE" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_default_stream_is_stdout(json_config: LoggingConfig) -> None:
    import sys

    setup_logging(json_config)

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stdout


def test_log_level_filtering(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """INFO level drops DEBUG events and keeps INFO and WARNING."""
    setup_logging(json_config, stream=capture_stream)
    logger = structlog.get_logger("test.module")

    logger.debug("debug_message")
    assert capture_stream.getvalue() == ""

    logger.info("info_message")
    assert "info_message" in capture_stream.getvalue()

    capture_stream.truncate(0)
    capture_stream.seek(0)
    logger.warning("warning_message")
    assert "warning_message" in capture_stream.getvalue()


def test_correlation_id_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    setup_logging(json_config, stream=capture_stream)
    logger = structlog.get_logger("test.module")

    set_correlation_id("corr-12345")
    assert get_correlation_id() == "corr-12345"

    logger.info("with_correlation")
    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["correlation_id"] == "corr-12345"

    set_correlation_id(None)
    assert get_correlation_id() is None

    capture_stream.truncate(0)
    capture_stream.seek(0)
    logger.info("without_correlation")
    log_entry = json.loads(capture_stream.getvalue().strip())
    assert "correlation_id" not in log_entry


def test_correlation_id_processor() -> None:
    event_dict: dict[str, Any] = {"event": "test"}

    result = add_correlation_id(None, "", event_dict.copy())
    assert "correlation_id" not in result

    set_correlation_id("test-id")
    result = add_correlation_id(None, "", event_dict.copy())
    assert result["correlation_id"] == "test-id"


def test_actor_context_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """The acting user is attached to every later event."""
    setup_logging(json_config, stream=capture_stream)

    bind_actor_context(actor="alice", role="MANAGER")

    structlog.get_logger("module1").info("task_assigned")
    first = json.loads(capture_stream.getvalue().strip())

    capture_stream.truncate(0)
    capture_stream.seek(0)
    structlog.get_logger("module2").info("task_unassigned")
    second = json.loads(capture_stream.getvalue().strip())

    for entry in (first, second):
        assert entry["actor"] == "alice"
        assert entry["actor_role"] == "MANAGER"


def test_file_rotation_handler_configuration(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "taskledger.log"
    config = LoggingConfig(
        level="INFO",
        format="json",
        file=log_file,
        rotation_size_mb=10,
        retention_count=3,
    )

    setup_logging(config)

    assert log_file.parent.exists()
    root = logging.getLogger()
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 10 * 1024 * 1024
    assert handler.backupCount == 3

    structlog.get_logger("test.module").info("file_write", data="test")
    handler.flush()

    log_entry = json.loads(log_file.read_text().strip())
    assert log_entry["event"] == "file_write"
    assert log_entry["data"] == "test"


def test_exception_formatting(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    setup_logging(json_config, stream=capture_stream)
    logger = structlog.get_logger("test.module")

    try:
        raise ValueError("store unavailable")
    except ValueError:
        logger.exception("store_failure")

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["event"] == "store_failure"
    assert log_entry["level"] == "error"
    assert "ValueError: store unavailable" in log_entry["exception"]


def test_config_validation() -> None:
    LoggingConfig(level="DEBUG")
    LoggingConfig(level="info")
    LoggingConfig(format="json")
    LoggingConfig(format="CONSOLE")

    with pytest.raises(ValueError, match="Invalid log level"):
        LoggingConfig(level="INVALID")

    with pytest.raises(ValueError, match="Invalid log format"):
        LoggingConfig(format="xml")
