"""
labas_sms/core/logging.py

Purpose: Logging configuration

- Standardizes log format
- JSON records in production, coloured lines in development
- Context tracking (username, attempt)
"""

import logging
import sys
import json
from datetime import datetime, timezone
from contextvars import ContextVar
from typing import Any, Dict, Optional
from labas_sms.core.config import settings, Settings

# Record attributes copied into formatted output when present
CONTEXT_FIELDS = ("username", "attempt", "attempts")

# Fields of the active LogContext, per asyncio task
_log_context: ContextVar[Dict[str, Any]] = ContextVar("labas_log_context", default={})


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

        return json.dumps(log_data, ensure_ascii=False)


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


def setup_logging(config: Optional[Settings] = None):
    """
    Configures process-wide logging.
    Uses JSON format in production, human-readable otherwise.
    """
    config = config or settings
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    if config.is_production:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger("labas_sms")
    logger.debug(
        "Logging configured",
        extra={"environment": config.ENVIRONMENT, "log_level": config.LOG_LEVEL}
    )

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger under the labas_sms hierarchy
    """
    if name == "labas_sms" or name.startswith("labas_sms."):
        return logging.getLogger(name)
    return logging.getLogger(f"labas_sms.{name}")


class ContextFilter(logging.Filter):
    """
    Copies the current LogContext fields onto each record.
    Attach to handlers; never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class LogContext:
    """
    Context manager for adding structured context to logs.

    Fields live in a ContextVar, so each asyncio task sees only its own
    context and concurrent sends on different clients do not mix.

    Usage:
        with LogContext(username="860000000", attempt=1):
            logger.info("Submitting SMS form")
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
        self._token = None


def current_context() -> Dict[str, Any]:
    """Fields of the innermost active LogContext."""
    return dict(_log_context.get())
