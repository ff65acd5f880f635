"""structlog setup for taskledger.

Log events are rendered by structlog (JSON lines or the coloured console
renderer) and written through one stdlib handler: a size-rotated file when
``LoggingConfig.file`` is set, otherwise a stream. Two pieces of context
ride along on every event:

- ``correlation_id``: groups the lines emitted by one CLI invocation
- ``actor`` / ``actor_role``: the user on whose behalf the work is done

Modules obtain their logger with ``structlog.get_logger(__name__)``.

Example usage:
    >>> setup_logging(LoggingConfig(level="INFO", format="json"), stream=sys.stderr)
    >>> bind_actor_context(actor="alice", role="MANAGER")
    >>> structlog.get_logger(__name__).info("task_assigned", task_id=7)
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
from typing import Any, TextIO

import structlog

from taskledger.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor copying the current correlation id into the event."""
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def bind_actor_context(actor: str, role: str) -> None:
    """Attach the acting user to every later event in this context.

    Args:
        actor: Username of the acting user
        role: Role value of the acting user
    """
    structlog.contextvars.bind_contextvars(actor=actor, actor_role=role)


def _build_handler(config: LoggingConfig, stream: TextIO | None) -> logging.Handler:
    if config.file is None:
        return logging.StreamHandler(stream or sys.stdout)
    config.file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=config.file,
        maxBytes=config.rotation_size_mb * 1024 * 1024,
        backupCount=config.retention_count,
        encoding="utf-8",
    )


def setup_logging(config: LoggingConfig, stream: TextIO | None = None) -> None:
    """Install the handler and the structlog processor chain.

    Calling it again replaces the previous handler, so the CLI callback
    may run once per invocation.

    Args:
        config: Logging section of TaskLedgerConfig
        stream: Stream used when no file is configured (default stdout)
    """
    level = getattr(logging, config.level)

    handler = _build_handler(config, stream)
    handler.setLevel(level)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    renderer: Any
    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
