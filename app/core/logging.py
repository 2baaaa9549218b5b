"""
app/core/logging.py

Purpose: Logging configuration

- Standardizes log format
- Controls log levels
- Structured JSON logging in production
- Context tracking (destination, delivery method, outcome)
"""

import logging
import sys
import json
from datetime import datetime, timezone
from app.core.config import settings


# Record attributes rendered by both formatters when present
CONTEXT_FIELDS = ("destination", "method", "outcome", "retry_after")


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter for structured JSON logging in production.
    Makes logs easily parseable by monitoring tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter for development environment.
    """

    def format(self, record: logging.LogRecord) -> str:
        colors = {
            "DEBUG": "\033[36m",      # Cyan
            "INFO": "\033[32m",       # Green
            "WARNING": "\033[33m",    # Yellow
            "ERROR": "\033[31m",      # Red
            "CRITICAL": "\033[35m",   # Magenta
        }
        reset = "\033[0m"

        color = colors.get(record.levelname, reset)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        message = f"{color}[{timestamp}] {record.levelname:<8}{reset} {record.name}: {record.getMessage()}"

        context_parts = [
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if hasattr(record, field)
        ]
        if context_parts:
            message += f" [{', '.join(context_parts)}]"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging():
    """
    Configures application-wide logging with appropriate formatters.
    Uses JSON format in production, human-readable in development.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)

    if settings.is_production:
        formatter = StructuredFormatter()
    else:
        formatter = DevelopmentFormatter()

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger = logging.getLogger("smsverify")
    logger.info(
        "Logging configured",
        extra={
            "environment": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "debug_mode": settings.DEBUG
        }
    )

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(f"smsverify.{name}")


class LogContext:
    """
    Context manager for adding structured context to logs.

    Usage:
        with LogContext(destination="+1555***4567", method="demo_mode"):
            logger.info("Code dispatched")
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._old_factory = None

    def __enter__(self):
        self._old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = self._old_factory(*args, **kwargs)
            for key, value in self.context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._old_factory)
