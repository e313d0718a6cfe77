"""Metrics middleware for recording HTTP request metrics.

Records Prometheus metrics for all HTTP requests including duration,
status codes, and endpoints.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.infrastructure.observability.metrics import record_http_request

UNMATCHED_ENDPOINT = "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to record HTTP request metrics.

    Labels: method, endpoint, status_code. The endpoint is the route
    template (e.g. /services/{name}), never the service name itself, to
    keep cardinality bounded by the number of routes.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        record_http_request(
            method=request.method,
            endpoint=self._route_template(request),
            status_code=response.status_code,
            duration=time.perf_counter() - start_time,
        )

        return response

    def _route_template(self, request: Request) -> str:
        """Return the matched route path template.

        Requests that matched no route (404s on arbitrary paths) share a
        single label value.

        Examples:
            /api/v1/service-catalog/services/auth-api -> /api/v1/service-catalog/services/{name}
            /no/such/path -> unmatched
        """
        route = request.scope.get("route")
        path = getattr(route, "path_format", None) or getattr(route, "path", None)
        return path or UNMATCHED_ENDPOINT
