"""Observability infrastructure module.

Provides OpenTelemetry tracing, structured logging, and Prometheus metrics.
"""

from src.infrastructure.observability.logging import configure_logging, get_logger
from src.infrastructure.observability.metrics import (
    get_metrics_content,
    record_catalog_operation,
    record_collaborator_request,
    record_health_status,
    record_http_request,
    record_skipped_file,
)
from src.infrastructure.observability.tracing import (
    catalog_span,
    instrument_fastapi_app,
    setup_tracing,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Tracing
    "setup_tracing",
    "instrument_fastapi_app",
    "catalog_span",
    # Metrics
    "get_metrics_content",
    "record_http_request",
    "record_catalog_operation",
    "record_skipped_file",
    "record_health_status",
    "record_collaborator_request",
]
