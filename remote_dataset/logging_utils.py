"""
Structured logging utilities for remotely backed datasets.

Datasets log through ``remote_dataset.*`` loggers. Hosts running in
cloud environments can switch them to single-line JSON output with
``configure_structured_logging``.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message"
}


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter emitting one object per record.

    Fields:
    - timestamp: ISO 8601 format in UTC
    - level: Log level
    - logger: Logger name
    - message: Log message
    - Additional context fields from the extra dict (e.g. dataset, fields)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    log_obj[key] = value
                except (TypeError, ValueError):
                    log_obj[key] = str(value)

        return json.dumps(log_obj, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = "remote_dataset",
) -> logging.Logger:
    """
    Route dataset logs to stdout as JSON.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure (default: the package logger,
            None for the root logger)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())

    logger.addHandler(handler)
    logger.setLevel(level)

    return logger


def get_dataset_logger(name: str) -> logging.Logger:
    """
    Get a logger for a dataset component.

    Args:
        name: Component name (e.g., 'sync', 'flush')

    Returns:
        Logger instance named 'remote_dataset.{name}'
    """
    return logging.getLogger(f"remote_dataset.{name}")


class DatasetLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds dataset context to all log messages.

    Every record carries a ``dataset`` field naming the dataset (or its
    owner) it was emitted for.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return f"[{self.extra.get('dataset', '-')}] {msg}", kwargs
