"""Prometheus metrics instrumentation.

Defines and exports Prometheus metrics for monitoring the catalog.
Avoids high cardinality by omitting service names from labels.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# HTTP Request Metrics
http_requests_total = Counter(
    name="catalog_http_requests_total",
    documentation="Total number of HTTP requests",
    labelnames=["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    name="catalog_http_request_duration_seconds",
    documentation="HTTP request duration in seconds",
    labelnames=["method", "endpoint", "status_code"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Catalog Metrics
catalog_operations_total = Counter(
    name="catalog_operations_total",
    documentation="Total number of catalog operations by outcome",
    labelnames=["operation", "outcome"],  # outcome: success, error class name
)

catalog_skipped_files_total = Counter(
    name="catalog_skipped_files_total",
    documentation="Total number of unreadable service files skipped while listing",
)

catalog_health_status_total = Counter(
    name="catalog_health_status_total",
    documentation="Total number of computed service health results by status",
    labelnames=["status"],
)

# Collaborator Metrics
collaborator_request_duration_seconds = Histogram(
    name="catalog_collaborator_request_duration_seconds",
    documentation="Duration of requests to Kubernetes, GitHub and git",
    labelnames=["collaborator", "outcome"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def get_metrics_content() -> tuple[bytes, str]:
    """Generate Prometheus metrics in exposition format.

    Returns:
        Tuple of (metrics_bytes, content_type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration: float,
) -> None:
    """Record HTTP request metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        endpoint: Route template (e.g., /api/v1/service-catalog/services/{name})
        status_code: HTTP status code
        duration: Request duration in seconds
    """
    labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
    http_requests_total.labels(**labels).inc()
    http_request_duration_seconds.labels(**labels).observe(duration)


def record_catalog_operation(operation: str, outcome: str = "success") -> None:
    """Record a catalog operation.

    Args:
        operation: Controller operation (create, update, delete, get, list, ...)
        outcome: "success" or the error class name
    """
    catalog_operations_total.labels(operation=operation, outcome=outcome).inc()


def record_skipped_file() -> None:
    catalog_skipped_files_total.inc()


def record_health_status(status: str) -> None:
    catalog_health_status_total.labels(status=status).inc()


def record_collaborator_request(collaborator: str, outcome: str, duration: float) -> None:
    """Record a request to an external collaborator.

    Args:
        collaborator: kubernetes, github or git
        outcome: success or failure
        duration: Request duration in seconds
    """
    collaborator_request_duration_seconds.labels(
        collaborator=collaborator, outcome=outcome
    ).observe(duration)
