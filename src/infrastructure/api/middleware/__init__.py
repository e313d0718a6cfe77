"""API middleware components.

This module contains middleware for user context extraction, error
handling, and other cross-cutting concerns.
"""

from .auth import get_user_context, require_user_context
from .error_handler import ErrorHandlerMiddleware, catalog_error_handler
from .logging_middleware import LoggingMiddleware
from .metrics_middleware import MetricsMiddleware

__all__ = [
    "get_user_context",
    "require_user_context",
    "ErrorHandlerMiddleware",
    "catalog_error_handler",
    "LoggingMiddleware",
    "MetricsMiddleware",
]
