"""
Health check endpoints.

Provides liveness and readiness probes for Kubernetes.
Also provides Prometheus metrics endpoint.
"""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from src.domain.exceptions import StorageError
from src.infrastructure.api.dependencies import get_service_repository
from src.infrastructure.observability.logging import get_logger
from src.infrastructure.observability.metrics import get_metrics_content
from src.infrastructure.storage.filesystem_repository import (
    FilesystemServiceRepository,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Check if the service is alive",
    tags=["Health"],
)
async def liveness() -> dict:
    """
    Liveness probe - check if the process is running.

    This endpoint always returns 200 if the process is alive.
    Used by Kubernetes to determine if the pod should be restarted.
    """
    return {
        "status": "healthy",
        "service": "dashops-service-catalog",
    }


@router.get(
    "/health/ready",
    status_code=status.HTTP_200_OK,
    summary="Readiness probe",
    description="Check if the service is ready to accept traffic",
    tags=["Health"],
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Catalog directory is not readable"},
    },
)
async def readiness(
    repository: FilesystemServiceRepository = Depends(get_service_repository),
) -> JSONResponse:
    """
    Readiness probe - check if the service can handle requests.

    Checks:
    - Catalog directory is readable

    Returns 200 if all checks pass, 503 otherwise.
    """
    checks = {}

    try:
        info = await repository.get_storage_info()
        checks["storage"] = "healthy"
        service_count = info.service_count
    except StorageError as e:
        logger.warning("readiness_storage_unhealthy", error=e.message)
        checks["storage"] = "unhealthy"
        service_count = None

    if all(v == "healthy" for v in checks.values()):
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "ready", "checks": checks, "services": service_count},
        )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "checks": checks},
    )


@router.get(
    "/metrics",
    status_code=status.HTTP_200_OK,
    summary="Prometheus metrics",
    description="Export Prometheus metrics in exposition format",
    tags=["Observability"],
    response_class=Response,
)
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Metrics include:
    - HTTP request counts and durations
    - Catalog operation outcomes
    - Skipped (undecodable) service files
    - Computed health statuses
    - Kubernetes/GitHub/git call durations
    """
    metrics_bytes, content_type = get_metrics_content()

    return Response(
        content=metrics_bytes,
        media_type=content_type,
    )
