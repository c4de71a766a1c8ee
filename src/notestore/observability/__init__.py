"""Observability module for notestore.

Provides structured logging:
- JSON-formatted logs for log aggregation systems
- Human-readable console logs for development
- Request correlation IDs
"""

from notestore.observability.logging import (
    LogContext,
    configure_logging,
    get_logger,
    request_id_var,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
    "request_id_var",
]
