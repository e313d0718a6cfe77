"""Integration tests for catalog tracing spans.

Spans are captured with the SDK's in-memory exporter instead of a collector.
"""

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from src.domain.exceptions import CollaboratorUnavailableError, ServiceNotFoundError
from src.infrastructure.config import get_settings, reset_settings
from src.infrastructure.observability import tracing
from src.infrastructure.observability.tracing import build_resource, catalog_span


@pytest.fixture
def exporter(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(tracing, "_tracer", provider.get_tracer(__name__))
    return exporter


class TestCatalogSpan:
    """Tests for catalog_span naming, attributes and outcomes."""

    def test_success_span(self, exporter):
        with catalog_span("get_health", service_name="auth-api") as span:
            span.set_attribute("catalog.overall_status", "healthy")

        (finished,) = exporter.get_finished_spans()
        assert finished.name == "catalog.get_health"
        assert finished.attributes["catalog.service_name"] == "auth-api"
        assert finished.attributes["catalog.overall_status"] == "healthy"
        assert finished.attributes["catalog.outcome"] == "success"
        assert finished.status.status_code == StatusCode.UNSET

    def test_client_error_leaves_status_unset(self, exporter):
        with pytest.raises(ServiceNotFoundError):
            with catalog_span("get_health", service_name="ghost"):
                raise ServiceNotFoundError("ghost")

        (finished,) = exporter.get_finished_spans()
        assert finished.attributes["catalog.outcome"] == "ServiceNotFoundError"
        assert finished.status.status_code == StatusCode.UNSET
        assert finished.events == ()

    def test_collaborator_error_marks_span_failed(self, exporter):
        with pytest.raises(CollaboratorUnavailableError):
            with catalog_span("get_health", service_name="auth-api"):
                raise CollaboratorUnavailableError("kubernetes API returned 503")

        (finished,) = exporter.get_finished_spans()
        assert finished.attributes["catalog.outcome"] == "CollaboratorUnavailableError"
        assert finished.status.status_code == StatusCode.ERROR
        assert finished.events[0].name == "exception"


class TestTraceResource:
    """Tests for the resource describing this catalog instance."""

    def test_resource_attributes(self, monkeypatch):
        monkeypatch.setenv("CATALOG_DIRECTORY", "/var/lib/catalog")
        monkeypatch.setenv("CATALOG_VERSIONING_ENABLED", "true")
        reset_settings()

        try:
            attributes = build_resource(get_settings()).attributes
        finally:
            reset_settings()

        assert attributes["service.name"] == "dashops-service-catalog"
        assert attributes["service.namespace"] == "dashops"
        assert attributes["catalog.directory"] == "/var/lib/catalog"
        assert attributes["catalog.versioning_enabled"] is True
