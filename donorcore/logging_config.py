"""Structured logging configuration for donorcore."""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import structlog


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    # Donor PII and secrets never reach the log sink
    SENSITIVE_FIELDS = {
        "email", "phone", "address", "student_name",
        "api_key", "password", "token", "secret", "authorization",
    }

    _RESERVED = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "getMessage", "exc_info", "exc_text",
        "stack_info", "taskName", "message",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in self._RESERVED:
                continue
            if self._is_sensitive_field(key):
                log_data[key] = "[REDACTED]"
            else:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)

    def _is_sensitive_field(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


def _configure_structlog() -> None:
    """Route structlog events through stdlib logging.

    Event keys become ``extra`` fields on the stdlib record so that
    ``StructuredFormatter`` can emit and redact them.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    _configure_structlog()


def setup_logging(
    format: str = "json",
    level: str = "INFO",
    log_file: Optional[str] = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        format: Log format ("json" or "text")
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if format == "json":
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configure_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to the stdlib logger ``name``."""
    return structlog.get_logger(name)


@contextmanager
def log_context(**kwargs: Any):
    """Bind fields to every log event emitted within the context.

    Example:
        with log_context(import_row=12):
            engine.find_duplicates(candidate, donors)
    """
    tokens = structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


class Timer:
    """Context manager for timing operations.

    Example:
        with Timer() as timer:
            matches = engine.find_duplicates(candidate, donors)
        logger.info("dedupe_done", duration_ms=timer.duration_ms)
    """

    def __init__(self):
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        self.duration_ms = (self.end_time - self.start_time) * 1000
