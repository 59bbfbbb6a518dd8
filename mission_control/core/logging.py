"""Structured logging configuration for Mission Control."""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Dict, Optional, Set

# Context variable for request-scoped data
request_context: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})

# Keys whose values are credentials. Provider probes use several
# vendor-specific auth headers, so the list is longer than the usual
# Authorization/Cookie pair.
SENSITIVE_KEYS: Set[str] = {
    "authorization",
    "cookie",
    "x-api-key",
    "xi-api-key",
    "x-subscription-token",
    "secret",
    "token",
    "api_key",
    "password",
    "credential",
}


def _is_token_like(value: str) -> bool:
    """Check if a string looks like a sensitive token."""
    if len(value) < 16 or " " in value:
        return False
    cleaned = value.replace("-", "").replace("_", "").replace(".", "")
    return cleaned.isalnum() and any(c.isdigit() for c in cleaned)


def _redact_value(value: Any) -> str:
    """Redact a sensitive value, keeping a short prefix for correlation."""
    if not isinstance(value, str) or len(value) < 12:
        return "<REDACTED>"
    return f"{value[:3]}***"


def redact_sensitive_data(data: Any) -> Any:
    """Recursively redact credential values from log payloads."""
    if isinstance(data, dict):
        redacted = {}
        for key, value in data.items():
            if str(key).lower() in SENSITIVE_KEYS:
                redacted[key] = _redact_value(value)
            else:
                redacted[key] = redact_sensitive_data(value)
        return redacted
    elif isinstance(data, list):
        return [redact_sensitive_data(item) for item in data]
    elif isinstance(data, str) and _is_token_like(data):
        return _redact_value(data)
    return data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = request_context.get()
        if ctx:
            log_data["request_id"] = ctx.get("request_id")
            log_data["path"] = ctx.get("path")

        if hasattr(record, "data") and record.data:
            log_data["data"] = redact_sensitive_data(record.data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",   # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console."""
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")

        ctx = request_context.get()
        request_id = ctx.get("request_id", "-")[:8] if ctx else "-"

        message = f"{timestamp} | {color}{record.levelname:8}{self.RESET} | {request_id} | {record.name} | {record.getMessage()}"

        if hasattr(record, "data") and record.data:
            message += f" | {redact_sensitive_data(record.data)}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that accepts a ``data`` payload."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Move ``data`` into ``extra`` so formatters can see it."""
        extra = kwargs.get("extra", {})
        if "data" in kwargs:
            extra["data"] = kwargs.pop("data")
        kwargs["extra"] = extra
        return msg, kwargs


_loggers: Dict[str, ContextLogger] = {}


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger."""
    if name not in _loggers:
        logger = logging.getLogger(name)
        _loggers[name] = ContextLogger(logger, {})
    return _loggers[name]


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure application logging."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    # File handler (always JSON)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # httpx logs full request URLs at INFO; provider probes carry query tokens.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
