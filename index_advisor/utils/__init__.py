"""Shared utilities."""

from .logging import (
    setup_logging,
    get_logger,
    get_request_logger,
    ConsoleFormatter,
    RequestLoggerAdapter,
    StructuredFormatter,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_request_logger",
    "ConsoleFormatter",
    "RequestLoggerAdapter",
    "StructuredFormatter",
]
