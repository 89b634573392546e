"""Logging configuration with per-request context.

Advisory output goes to stdout, so every handler set up here writes to stderr
or a file. Records logged through a request logger carry the request id and
any outcome fields; both formatters render them.
"""

import logging
import sys
import json
from typing import Optional, Dict, Any
from datetime import datetime, timezone

CONTEXT_ATTRIBUTE = "advisor_context"


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, CONTEXT_ATTRIBUTE, None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with request context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_record_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter that appends request context as key=value."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        fields = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{line} [{fields}]"


def setup_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Use structured JSON logging if True
        log_file: Optional log file path
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if structured:
        formatter = StructuredFormatter()
    else:
        formatter = ConsoleFormatter()

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically for ``__name__``)."""
    return logging.getLogger(name)


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter attaching request context to every record."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        context = dict(self.extra)
        context.update(extra.pop(CONTEXT_ATTRIBUTE, {}))
        extra[CONTEXT_ATTRIBUTE] = context
        kwargs["extra"] = extra
        return msg, kwargs

    def with_fields(self, **fields: Any) -> "RequestLoggerAdapter":
        """Return an adapter carrying this context plus ``fields``."""
        context = dict(self.extra)
        context.update(fields)
        return RequestLoggerAdapter(self.logger, context)


def get_request_logger(name: str, request_id: str, **fields: Any) -> RequestLoggerAdapter:
    """Get a logger whose records carry ``request_id`` and extra fields.

    Example:
        >>> logger = get_request_logger(__name__, "orders")
        >>> logger.with_fields(status="failed").error("Advisory failed")
    """
    context = {"request_id": request_id}
    context.update(fields)
    return RequestLoggerAdapter(get_logger(name), context)
