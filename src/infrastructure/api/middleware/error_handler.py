"""Global error handling.

Converts catalog errors and unexpected exceptions to RFC 7807 Problem Details
for consistent error responses. Includes correlation IDs for request tracing.
"""

import uuid

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from src.domain.exceptions import (
    CollaboratorUnavailableError,
    PermissionDeniedError,
    ServiceAlreadyExistsError,
    ServiceCatalogError,
    ServiceNotFoundError,
    ServiceValidationError,
    StorageError,
    VersionConflictError,
)
from src.infrastructure.api.schemas.error_schema import ERROR_TYPE_BASE, ProblemDetails
from src.infrastructure.observability.logging import get_logger
from src.infrastructure.observability.metrics import record_catalog_operation

logger = get_logger(__name__)

# Most specific first: ServiceDecodeError is a StorageError
CATALOG_ERROR_MAPPING: list[tuple[type[ServiceCatalogError], int, str, str]] = [
    (ServiceValidationError, status.HTTP_400_BAD_REQUEST, "validation-failed", "Validation Failed"),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN, "permission-denied", "Permission Denied"),
    (ServiceNotFoundError, status.HTTP_404_NOT_FOUND, "service-not-found", "Service Not Found"),
    (ServiceAlreadyExistsError, status.HTTP_409_CONFLICT, "service-exists", "Service Already Exists"),
    (VersionConflictError, status.HTTP_409_CONFLICT, "version-conflict", "Version Conflict"),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR, "storage-error", "Storage Error"),
    (
        CollaboratorUnavailableError,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "collaborator-unavailable",
        "Collaborator Unavailable",
    ),
]

STATUS_TEXTS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def get_correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid.uuid4())


def catalog_error_to_problem(
    exc: ServiceCatalogError, request: Request, correlation_id: str
) -> ProblemDetails:
    """Map a catalog error to Problem Details."""
    for error_type, status_code, slug, title in CATALOG_ERROR_MAPPING:
        if isinstance(exc, error_type):
            return ProblemDetails(
                type=f"{ERROR_TYPE_BASE}/{slug}",
                title=title,
                status=status_code,
                detail=exc.message,
                instance=request.url.path,
                correlation_id=correlation_id,
                field=getattr(exc, "field", None),
            )

    return ProblemDetails(
        type=f"{ERROR_TYPE_BASE}/catalog-error",
        title="Internal Server Error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=exc.message,
        instance=request.url.path,
        correlation_id=correlation_id,
    )


def problem_response(problem: ProblemDetails) -> JSONResponse:
    """Create JSONResponse from ProblemDetails."""
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers={"X-Correlation-ID": problem.correlation_id or ""},
    )


async def catalog_error_handler(request: Request, exc: ServiceCatalogError) -> JSONResponse:
    """Exception handler registered for ServiceCatalogError.

    Records the failed operation under the route name before responding.
    """
    correlation_id = get_correlation_id(request)
    problem = catalog_error_to_problem(exc, request, correlation_id)

    route = request.scope.get("route")
    if route is not None:
        record_catalog_operation(getattr(route, "name", "unknown"), type(exc).__name__)

    log = logger.error if problem.status >= 500 else logger.info
    log(
        "catalog_request_rejected",
        correlation_id=correlation_id,
        path=request.url.path,
        method=request.method,
        status_code=problem.status,
        error=exc.message,
    )
    return problem_response(problem)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert HTTPException to RFC 7807 Problem Details."""
    problem = ProblemDetails(
        type="about:blank",
        title=STATUS_TEXTS.get(exc.status_code, "Error"),
        status=exc.status_code,
        detail=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        instance=request.url.path,
        correlation_id=get_correlation_id(request),
    )
    response = problem_response(problem)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware assigning correlation IDs and converting unhandled errors to 500."""

    async def dispatch(self, request: Request, call_next):
        """Catch unhandled exceptions and convert to Problem Details format.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response with Problem Details format on error
        """
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as exc:
            logger.error(
                "request_failed",
                correlation_id=correlation_id,
                path=request.url.path,
                method=request.method,
                exc_info=exc,
            )

            if isinstance(exc, ServiceCatalogError):
                problem = catalog_error_to_problem(exc, request, correlation_id)
            else:
                problem = ProblemDetails(
                    type="about:blank",
                    title="Internal Server Error",
                    status=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="An unexpected error occurred",
                    instance=request.url.path,
                    correlation_id=correlation_id,
                )
            return problem_response(problem)
