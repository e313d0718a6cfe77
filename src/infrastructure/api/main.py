"""
FastAPI application entry point.

Implements the API layer of the Infrastructure following Clean Architecture.
This module sets up the FastAPI app, registers routes, middleware, and exception handlers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.exceptions import CollaboratorUnavailableError, ServiceCatalogError
from src.infrastructure.config.settings import get_settings
from src.infrastructure.observability import (
    configure_logging,
    get_logger,
    instrument_fastapi_app,
    setup_tracing,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Configure observability (logging, tracing)
    - Create the catalog directory and initialize git versioning
    - Instrument FastAPI with OpenTelemetry

    Shutdown:
    - Close Kubernetes and GitHub HTTP clients
    """
    from .dependencies import (
        close_collaborators,
        get_service_repository,
        get_versioning_repository,
    )

    settings = get_settings()

    configure_logging()
    if settings.observability.tracing_enabled:
        setup_tracing()
        instrument_fastapi_app(app)

    repository = get_service_repository()
    versioning = get_versioning_repository()
    if versioning is not None:
        try:
            await versioning.initialize()
        except CollaboratorUnavailableError as e:
            # Writes still succeed; history stays empty until git works
            logger.warning("versioning_initialization_failed", error=e.message)

    logger.info(
        "service_catalog_started",
        directory=str(repository.directory),
        versioning_enabled=versioning is not None,
        environment=settings.environment,
    )

    yield

    await close_collaborators()
    logger.info("service_catalog_stopped")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="DashOps Service Catalog API",
        description=(
            "Service catalog storing one YAML descriptor per service, with "
            "ownership checks, change history and tier-weighted health "
            "computed from live Kubernetes deployment state."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,  # Cannot use credentials with wildcard origins
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (order matters: last added = first executed)
    from .middleware.error_handler import ErrorHandlerMiddleware
    from .middleware.logging_middleware import LoggingMiddleware
    from .middleware.metrics_middleware import MetricsMiddleware

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)  # Outermost: assigns correlation IDs

    # Register routes
    from .routes import health, service_catalog

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(
        service_catalog.router,
        prefix="/api/v1/service-catalog",
        tags=["Service Catalog"],
    )

    # Register exception handlers for proper RFC 7807 format
    from .middleware.error_handler import (
        catalog_error_handler,
        get_correlation_id,
        http_exception_handler,
        problem_response,
    )
    from .schemas.error_schema import ProblemDetails

    app.add_exception_handler(ServiceCatalogError, catalog_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc: RequestValidationError):
        """Convert Pydantic validation errors to RFC 7807 Problem Details."""
        problem = ProblemDetails(
            type="about:blank",
            title="Unprocessable Entity",
            status=422,
            detail=f"Validation failed: {exc.errors()}",
            instance=request.url.path,
            correlation_id=get_correlation_id(request),
        )
        return problem_response(problem)

    @app.get("/", status_code=status.HTTP_200_OK)
    async def root() -> JSONResponse:
        """Root endpoint - API information."""
        return JSONResponse(
            {
                "name": "DashOps Service Catalog API",
                "version": "1.0.0",
                "status": "operational",
                "docs": "/docs",
            }
        )

    return app


# Create app instance
app = create_app()
