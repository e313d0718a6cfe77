"""Tracing for the service catalog API.

Spans go to an OTLP gRPC collector when OTEL_TRACING_ENABLED is set. Incoming
requests and the outgoing Kubernetes/GitHub calls are instrumented
automatically; catalog operations that fan out to collaborators open their
own `catalog.<operation>` spans through catalog_span().
"""

import contextlib
from collections.abc import Iterator
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, Status, StatusCode

from src.domain.exceptions import (
    CollaboratorUnavailableError,
    ServiceCatalogError,
    StorageError,
)
from src.infrastructure.config import Settings, get_settings
from src.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

PACKAGE_NAME = "dashops-service-catalog"
SERVICE_NAMESPACE = "dashops"

# Probes and scrapes would otherwise dominate the sampled traces
UNTRACED_URLS = "api/v1/health,api/v1/metrics"

# Client-side catalog errors (not found, validation, permission, conflict)
# are expected outcomes and leave the span status unset.
SERVER_SIDE_ERRORS = (StorageError, CollaboratorUnavailableError)

_tracer = trace.get_tracer(__name__)


def _package_version() -> str:
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "0.0.0"


def build_resource(settings: Settings) -> Resource:
    """Describe this catalog instance for the trace backend."""
    return Resource.create(
        {
            "service.name": settings.observability.service_name,
            "service.namespace": SERVICE_NAMESPACE,
            "service.version": _package_version(),
            "deployment.environment.name": settings.environment,
            "catalog.directory": settings.catalog.directory,
            "catalog.versioning_enabled": settings.catalog.versioning_enabled,
        }
    )


def setup_tracing() -> TracerProvider:
    """Install the global tracer provider and instrument outgoing HTTPX calls.

    Sampling follows the caller's decision when the request already carries
    a trace (e.g. from the auth proxy); new traces are sampled at
    OTEL_TRACE_SAMPLE_RATE.

    Returns:
        The installed TracerProvider

    Note:
        The FastAPI app is instrumented separately through
        instrument_fastapi_app().
    """
    settings = get_settings()
    otel_config = settings.observability

    provider = TracerProvider(
        resource=build_resource(settings),
        sampler=ParentBased(TraceIdRatioBased(otel_config.trace_sample_rate)),
    )
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=otel_config.exporter_otlp_endpoint,
                insecure=otel_config.exporter_otlp_endpoint.startswith("http://"),
            )
        )
    )
    trace.set_tracer_provider(provider)
    HTTPXClientInstrumentor().instrument()

    logger.info(
        "tracing_configured",
        service_name=otel_config.service_name,
        otlp_endpoint=otel_config.exporter_otlp_endpoint,
        sample_rate=otel_config.trace_sample_rate,
    )
    return provider


def instrument_fastapi_app(app) -> None:
    """Trace API requests, leaving out health probes and metric scrapes."""
    FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)


@contextlib.contextmanager
def catalog_span(operation: str, **attributes: Any) -> Iterator[Span]:
    """Open a `catalog.<operation>` span carrying `catalog.*` attributes.

    The span ends with a `catalog.outcome` attribute: "success" or the name
    of the catalog error raised. Only storage and collaborator failures mark
    the span as an error.

    Example:
        >>> with catalog_span("get_health", service_name="auth-api") as span:
        ...     span.set_attribute("catalog.overall_status", "healthy")
    """
    with _tracer.start_as_current_span(
        f"catalog.{operation}",
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        for key, value in attributes.items():
            span.set_attribute(f"catalog.{key}", value)
        try:
            yield span
        except ServiceCatalogError as e:
            span.set_attribute("catalog.outcome", type(e).__name__)
            if isinstance(e, SERVER_SIDE_ERRORS):
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, e.message))
            raise
        except Exception as e:
            span.set_attribute("catalog.outcome", type(e).__name__)
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        span.set_attribute("catalog.outcome", "success")
