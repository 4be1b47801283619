"""
RainCache - Logging Setup

Configures the ``raincache`` logger with either plain text or structured
JSON output. Library modules only ever call ``logging.getLogger(__name__)``;
applications embedding RainCache call ``setup_logging`` once at startup.
"""

import json
import logging
import sys
from datetime import UTC, datetime

from .config import LogFormat, RainCacheConfig

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    (
        "args",
        "msg",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | int = logging.INFO,
    log_format: str = LogFormat.TEXT,
) -> logging.Logger:
    """
    Configure the ``raincache`` logger.

    Args:
        log_level: Minimum level, as a name ("DEBUG") or a logging constant
        log_format: "text" for human readable lines, "json" for structured output

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("raincache")
    logger.setLevel(log_level)

    # Remove existing handlers so repeated calls don't duplicate output
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if log_format == LogFormat.JSON:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
    logger.addHandler(handler)

    logger.debug(f"Logging configured. Level={logging.getLevelName(logger.level)}, format={log_format}")
    return logger


def setup_logging_from_config(config: RainCacheConfig) -> logging.Logger:
    """Configure logging from a loaded RainCacheConfig."""
    return setup_logging(log_level=config.log_level, log_format=config.log_format)
