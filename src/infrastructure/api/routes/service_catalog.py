"""Service catalog API routes.

CRUD over service descriptors, tier-weighted health, change history and
deployment-to-service resolution. Catalog errors raised by the controller
are converted to Problem Details by the registered exception handler.
"""

from fastapi import APIRouter, Depends, Path, Query, Response, status

from src.application.use_cases.service_catalog_controller import (
    ServiceCatalogController,
)
from src.domain.entities.service_list import ServiceFilter
from src.domain.entities.user_context import UserContext
from src.domain.exceptions import ServiceValidationError
from src.infrastructure.api.dependencies import (
    get_service_catalog_controller,
    get_service_repository,
)
from src.infrastructure.api.middleware.auth import require_user_context
from src.infrastructure.api.schemas.error_schema import ProblemDetails
from src.infrastructure.api.schemas.service_schema import (
    BatchHealthApiRequest,
    BatchHealthApiResponse,
    CatalogHistoryApiResponse,
    DependencyClosureApiResponse,
    ServiceApiModel,
    ServiceChangeApiModel,
    ServiceContextApiResponse,
    ServiceHealthApiResponse,
    ServiceHistoryApiResponse,
    ServiceListApiResponse,
    StorageStatusApiModel,
    SystemStatusApiResponse,
    VersioningStatusApiModel,
)
from src.infrastructure.observability.metrics import (
    record_catalog_operation,
    record_health_status,
)
from src.infrastructure.observability.tracing import catalog_span
from src.infrastructure.storage.filesystem_repository import (
    FilesystemServiceRepository,
)

router = APIRouter()

NOT_FOUND_RESPONSE = {"model": ProblemDetails, "description": "Service not found"}
UNAUTHORIZED_RESPONSE = {"model": ProblemDetails, "description": "No authenticated user"}
FORBIDDEN_RESPONSE = {"model": ProblemDetails, "description": "User is not in the owning team"}
VALIDATION_RESPONSE = {"model": ProblemDetails, "description": "Invalid service descriptor"}


@router.get(
    "/services",
    response_model=ServiceListApiResponse,
    summary="List services",
    description="List services with optional team/tier filters, text search and pagination",
)
async def list_services(
    team: str = Query("", description="Owning GitHub team"),
    tier: str | None = Query(None, description="Service tier (TIER-1, TIER-2, TIER-3)"),
    search: str = Query("", description="Case-insensitive text search"),
    limit: int | None = Query(None, ge=0, description="Page size (omit for all)"),
    offset: int = Query(0, ge=0, description="Matching services to skip"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> ServiceListApiResponse:
    page = await controller.list(
        ServiceFilter(
            team=team,
            tier=tier.upper() if tier else None,
            search=search,
            limit=limit,
            offset=offset,
        )
    )
    record_catalog_operation("list_services")
    return ServiceListApiResponse.from_entity(page)


@router.post(
    "/services",
    response_model=ServiceApiModel,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a service",
    responses={
        400: VALIDATION_RESPONSE,
        401: UNAUTHORIZED_RESPONSE,
        403: FORBIDDEN_RESPONSE,
        409: {"model": ProblemDetails, "description": "Service already exists"},
    },
)
async def create_service(
    body: ServiceApiModel,
    user: UserContext = Depends(require_user_context),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> ServiceApiModel:
    """
    Create a service descriptor.

    The name is normalized (lowercase, hyphenated) before validation, and
    the caller must belong to the owning team.
    """
    created = await controller.create(body.to_entity(), user)
    record_catalog_operation("create_service")
    return ServiceApiModel.from_entity(created)


@router.get(
    "/services/search",
    response_model=list[ServiceApiModel],
    response_model_by_alias=True,
    summary="Search services",
)
async def search_services(
    q: str = Query(..., min_length=1, description="Text to search for"),
    limit: int = Query(0, ge=0, description="Maximum results (0 for all)"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> list[ServiceApiModel]:
    services = await controller.search(q, limit)
    record_catalog_operation("search_services")
    return [ServiceApiModel.from_entity(service) for service in services]


@router.get(
    "/services/by-team/{team}",
    response_model=list[ServiceApiModel],
    response_model_by_alias=True,
    summary="List services owned by a team",
)
async def list_services_by_team(
    team: str = Path(..., description="GitHub team slug"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> list[ServiceApiModel]:
    services = await controller.list_by_team(team)
    record_catalog_operation("list_services_by_team")
    return [ServiceApiModel.from_entity(service) for service in services]


@router.get(
    "/services/by-tier/{tier}",
    response_model=list[ServiceApiModel],
    response_model_by_alias=True,
    summary="List services of a tier",
)
async def list_services_by_tier(
    tier: str = Path(..., description="TIER-1, TIER-2 or TIER-3"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> list[ServiceApiModel]:
    services = await controller.list_by_tier(tier.upper())
    record_catalog_operation("list_services_by_tier")
    return [ServiceApiModel.from_entity(service) for service in services]


@router.post(
    "/services/health/batch",
    response_model=BatchHealthApiResponse,
    summary="Get health for several services",
    description="Unknown service names are skipped",
)
async def get_batch_health(
    body: BatchHealthApiRequest,
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> BatchHealthApiResponse:
    with catalog_span("get_batch_health", requested=len(body.services)) as span:
        results = await controller.get_batch_health(body.services)
        span.set_attribute("catalog.resolved", len(results))
    for health in results:
        record_health_status(health.overall_status.value)
    record_catalog_operation("get_batch_health")
    return BatchHealthApiResponse(
        services=[ServiceHealthApiResponse.from_entity(health) for health in results]
    )


@router.get(
    "/services/{name}",
    response_model=ServiceApiModel,
    response_model_by_alias=True,
    summary="Get a service",
    responses={404: NOT_FOUND_RESPONSE},
)
async def get_service(
    name: str = Path(..., description="Service name"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> ServiceApiModel:
    service = await controller.get(name)
    record_catalog_operation("get_service")
    return ServiceApiModel.from_entity(service)


@router.put(
    "/services/{name}",
    response_model=ServiceApiModel,
    response_model_by_alias=True,
    summary="Update a service",
    responses={
        400: VALIDATION_RESPONSE,
        401: UNAUTHORIZED_RESPONSE,
        403: FORBIDDEN_RESPONSE,
        404: NOT_FOUND_RESPONSE,
        409: {"model": ProblemDetails, "description": "Stored revision changed"},
    },
)
async def update_service(
    body: ServiceApiModel,
    name: str = Path(..., description="Service name"),
    user: UserContext = Depends(require_user_context),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> ServiceApiModel:
    """
    Replace a service descriptor.

    metadata.name may be omitted; when present it must equal the path name.
    A non-zero metadata.version must equal the stored revision.
    """
    service = body.to_entity()
    if not service.metadata.name:
        service.metadata.name = name
    elif service.metadata.name != name:
        raise ServiceValidationError(
            "metadata.name",
            f"service name '{service.metadata.name}' does not match path '{name}'",
        )

    updated = await controller.update(service, user)
    record_catalog_operation("update_service")
    return ServiceApiModel.from_entity(updated)


@router.delete(
    "/services/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a service",
    responses={401: UNAUTHORIZED_RESPONSE, 403: FORBIDDEN_RESPONSE, 404: NOT_FOUND_RESPONSE},
)
async def delete_service(
    name: str = Path(..., description="Service name"),
    user: UserContext = Depends(require_user_context),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> Response:
    await controller.delete(name, user)
    record_catalog_operation("delete_service")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/services/{name}/health",
    response_model=ServiceHealthApiResponse,
    summary="Get service health",
    description="Tier-weighted health computed from live Kubernetes deployment state",
    responses={404: NOT_FOUND_RESPONSE},
)
async def get_service_health(
    name: str = Path(..., description="Service name"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> ServiceHealthApiResponse:
    with catalog_span("get_health", service_name=name) as span:
        health = await controller.get_health(name)
        span.set_attribute("catalog.overall_status", health.overall_status.value)
    record_health_status(health.overall_status.value)
    record_catalog_operation("get_service_health")
    return ServiceHealthApiResponse.from_entity(health)


@router.get(
    "/services/{name}/history",
    response_model=ServiceHistoryApiResponse,
    summary="Get service change history",
    description="Newest first; empty when versioning is disabled",
)
async def get_service_history(
    name: str = Path(..., description="Service name"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> ServiceHistoryApiResponse:
    history = await controller.get_history(name)
    record_catalog_operation("get_service_history")
    return ServiceHistoryApiResponse.from_entity(history)


@router.get(
    "/services/{name}/dependencies",
    response_model=DependencyClosureApiResponse,
    summary="Get transitive dependencies",
    responses={404: NOT_FOUND_RESPONSE},
)
async def get_service_dependencies(
    name: str = Path(..., description="Service name"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> DependencyClosureApiResponse:
    with catalog_span("get_dependency_closure", service_name=name) as span:
        closure = await controller.get_dependency_closure(name)
        span.set_attribute("catalog.dependency_count", len(closure.dependencies))
    record_catalog_operation("get_service_dependencies")
    return DependencyClosureApiResponse.from_entity(closure)


@router.get(
    "/system/history",
    response_model=CatalogHistoryApiResponse,
    summary="Get catalog-wide change history",
)
async def get_catalog_history(
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> CatalogHistoryApiResponse:
    history = await controller.get_all_history()
    record_catalog_operation("get_catalog_history")
    return CatalogHistoryApiResponse(
        history=[ServiceChangeApiModel.from_entity(change) for change in history]
    )


@router.get(
    "/system/status",
    response_model=SystemStatusApiResponse,
    summary="Get versioning and storage status",
    responses={500: {"model": ProblemDetails, "description": "Storage unreadable"}},
)
async def get_system_status(
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
    repository: FilesystemServiceRepository = Depends(get_service_repository),
) -> SystemStatusApiResponse:
    versioning = await controller.get_versioning_status()
    storage = await repository.get_storage_info()
    record_catalog_operation("get_system_status")
    return SystemStatusApiResponse(
        versioning=VersioningStatusApiModel.from_entity(versioning),
        storage=StorageStatusApiModel(
            provider=storage.provider,
            location=storage.location,
            service_count=storage.service_count,
            last_modified=storage.last_modified,
        ),
    )


@router.get(
    "/context/deployment/{deployment}",
    response_model=ServiceContextApiResponse,
    summary="Resolve the service owning a Kubernetes deployment",
    description="found is false when no service declares the deployment",
)
async def resolve_deployment_service(
    deployment: str = Path(..., description="Kubernetes deployment name"),
    namespace: str = Query("", description="Restrict to this namespace"),
    context: str = Query("", description="Restrict to this cluster context"),
    controller: ServiceCatalogController = Depends(get_service_catalog_controller),
) -> ServiceContextApiResponse:
    resolved = await controller.resolve_deployment_service(deployment, namespace, context)
    record_catalog_operation("resolve_deployment_service")
    return ServiceContextApiResponse.from_entity(resolved)
