"""Centralized diagnostic logging configuration for relayscript.

A worker's stdout and stderr are protocol channels, so diagnostic logging
never writes to them. Records go to an optional log file (text or JSON);
without one they are discarded.

Usage:
    from relayscript.core.logging_config import configure_logging, get_logger

    # Configure once at worker startup
    configure_logging(level="DEBUG", file_path="/tmp/worker.log")

    # Get loggers in modules
    logger = get_logger(__name__)

Environment Variables:
    RELAYSCRIPT_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    RELAYSCRIPT_LOG_FORMAT: Output format ("text" or "json")
    RELAYSCRIPT_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import Any, Literal

# Default format for text output
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_FORMAT_WITH_MS = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

PACKAGE_LOGGER = "relayscript"

# Track if logging has been configured
_configured = False

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Outputs logs as JSON objects with consistent structure:
    {
        "timestamp": "2026-10-19T14:30:00.123456",
        "level": "DEBUG",
        "logger": "relayscript.server.engine",
        "message": "command_received: cmd=f",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    include_ms: bool = True,
    force: bool = False,
) -> None:
    """Configure diagnostic logging for the worker.

    This should be called once at startup. Subsequent calls are ignored
    unless force=True. Only the "relayscript" logger is configured, and it
    does not propagate to the root logger, so nothing reaches the console.

    Args:
        level: Log level. Defaults to RELAYSCRIPT_LOG_LEVEL or "INFO".
        format: Output format. Defaults to RELAYSCRIPT_LOG_FORMAT or "text".
        file_path: Optional file path. Defaults to RELAYSCRIPT_LOG_FILE.
        include_ms: Include milliseconds in timestamp.
        force: Force reconfiguration even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    level = level or os.environ.get("RELAYSCRIPT_LOG_LEVEL", "INFO")
    format = format or os.environ.get("RELAYSCRIPT_LOG_FORMAT", "text")  # type: ignore
    file_path = file_path or os.environ.get("RELAYSCRIPT_LOG_FILE")

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.propagate = False

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    if file_path:
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setFormatter(_make_formatter(format, include_ms))
        package_logger.addHandler(file_handler)
    else:
        package_logger.addHandler(logging.NullHandler())

    _configured = True


def _make_formatter(format: str, include_ms: bool) -> logging.Formatter:
    if format == "json":
        return JsonFormatter()
    fmt = TEXT_FORMAT_WITH_MS if include_ms else TEXT_FORMAT
    return logging.Formatter(fmt, datefmt=DATE_FORMAT)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger under the relayscript hierarchy when name is a module path.
    """
    return logging.getLogger(name)
