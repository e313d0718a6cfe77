"""Logging middleware for structured request/response logging.

Logs every HTTP request with its correlation ID, caller, duration and
status code. Auth proxy headers are never logged.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Probes and scrapes would drown out catalog traffic
QUIET_PATHS = frozenset({"/api/v1/health", "/api/v1/health/ready", "/api/v1/metrics"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses.

    Logs:
    - Request method, path and client IP
    - Response status code and duration
    - Correlation ID and authenticated username when present
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request and log details.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            HTTP response
        """
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_ip = self._get_client_ip(request)
        quiet = path in QUIET_PATHS

        if not quiet:
            logger.info(
                "http_request_received",
                method=method,
                path=path,
                client_ip=client_ip,
                query_params=str(request.query_params) if request.query_params else None,
            )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "http_request_failed",
                method=method,
                path=path,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
                correlation_id=getattr(request.state, "correlation_id", None),
                error=str(e),
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not quiet or response.status_code >= 400:
            logger.info(
                "http_request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
                correlation_id=getattr(request.state, "correlation_id", None),
                user=getattr(request.state, "username", None),
            )

        return response

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request.

        Checks X-Forwarded-For first (the auth proxy sets it), falls back to
        the direct client address.
        """
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"
