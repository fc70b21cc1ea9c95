"""Logging and request observability."""

from .logging import configure_logging, get_correlation_id, set_correlation_id
from .middleware import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_correlation_id",
    "set_correlation_id",
]
