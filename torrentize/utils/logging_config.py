"""Logging configuration for torrentize.

Console records are rendered by Rich; an optional rotating log file can
hold plain or structured (JSON) records.
"""

from __future__ import annotations

import json
import logging
import logging.config
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from torrentize.utils.exceptions import TorrentizeError
from torrentize.utils.rich_logging import create_rich_handler

if TYPE_CHECKING:  # pragma: no cover
    from rich.console import Console

    from torrentize.models import ObservabilityConfig

ROOT_LOGGER = "torrentize"

_RECORD_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
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
        "message",
    }
)


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter for logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": record.created,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # fields passed through ``extra=``
        log_entry.update(
            {
                key: value
                for key, value in record.__dict__.items()
                if key not in _RECORD_KEYS and key not in log_entry
            }
        )
        return json.dumps(log_entry, default=str)


def setup_logging(
    config: ObservabilityConfig,
    level: int | None = None,
    console: Console | None = None,
) -> None:
    """Set up logging for the ``torrentize`` logger tree.

    Args:
        config: Observability settings
        level: Overrides ``config.log_level`` (used for -v / -q)
        console: Console for the Rich handler (defaults to stderr)

    """
    log_level = level if level is not None else logging.getLevelName(config.log_level.value)

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
            "simple": {
                "format": config.log_format,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {},
        "loggers": {
            ROOT_LOGGER: {
                "level": log_level,
                "handlers": [],
                "propagate": False,
            },
        },
    }

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logging_config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "structured" if config.structured_logging else "simple",
            "filename": str(log_path),
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "encoding": "utf-8",
        }
        logging_config["loggers"][ROOT_LOGGER]["handlers"].append("file")

    logging.config.dictConfig(logging_config)

    # RichHandler takes a live Console, so it is attached after dictConfig
    logging.getLogger(ROOT_LOGGER).addHandler(
        create_rich_handler(console=console, level=log_level)
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger in the torrentize namespace."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class LoggingContext:
    """Context manager that logs the start, end and duration of an operation."""

    def __init__(
        self,
        operation: str,
        log_level: int = logging.DEBUG,
        slow_threshold: float = 1.0,
        **kwargs: Any,
    ):
        """Initialize operation context manager.

        Args:
            operation: Name of the operation
            log_level: Level for start/completion records
            slow_threshold: Duration in seconds above which completion is
                logged at INFO
            **kwargs: Additional context passed as ``extra``

        """
        self.operation = operation
        self.kwargs = kwargs
        self.logger = get_logger(__name__)
        self.start_time: float | None = None
        self.log_level = log_level
        self.slow_threshold = slow_threshold
        self.duration = 0.0

    def __enter__(self) -> LoggingContext:
        """Enter the context manager."""
        self.start_time = time.monotonic()
        self.logger.log(self.log_level, "Starting %s", self.operation, extra=self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Exit the context manager."""
        self.duration = time.monotonic() - self.start_time if self.start_time else 0.0

        if exc_type is None:
            level = self.log_level
            if self.duration >= self.slow_threshold:
                level = max(level, logging.INFO)
            self.logger.log(
                level,
                "Completed %s in %.3fs",
                self.operation,
                self.duration,
                extra=self.kwargs,
            )
        else:
            self.logger.debug(
                "Failed %s in %.3fs: %s",
                self.operation,
                self.duration,
                exc_val,
                extra=self.kwargs,
            )

        return False  # Don't suppress exceptions


def log_exception(logger: logging.Logger, exc: BaseException, context: str = "") -> None:
    """Log an exception with context."""
    if isinstance(exc, TorrentizeError):
        logger.error(
            "%s: %s",
            context,
            exc.message,
            extra={"details": exc.details},
            exc_info=logger.isEnabledFor(logging.DEBUG),
        )
    else:
        logger.exception("%s: %s", context, exc)
