"""Integration tests for the Kubernetes API client.

Uses httpx.MockTransport to simulate API server responses without a cluster.
"""

import httpx
import pytest

from src.application.use_cases.service_catalog_controller import ServiceCatalogController
from src.domain.entities.service_health import ServiceStatus
from src.domain.exceptions import CollaboratorUnavailableError
from src.infrastructure.integrations.kubernetes_client import (
    KubernetesApiClient,
    KubernetesContextConfig,
    load_kubernetes_contexts,
)

CONTEXTS = {
    "prod-cluster": KubernetesContextConfig(
        name="prod-cluster", api_url="https://k8s.prod.example.com/", token="secret"
    ),
}


def _deployment(replicas=3, ready=None, conditions=None):
    status = {"conditions": conditions or []}
    if ready is not None:
        status["readyReplicas"] = ready
    return {"spec": {"replicas": replicas}, "status": status}


class TestKubernetesApiClient:
    """Test deployment status lookups."""

    @pytest.fixture
    def requests(self):
        return []

    @pytest.fixture
    def responses(self):
        return {}

    @pytest.fixture
    async def client(self, requests, responses):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path in responses:
                return responses[request.url.path]
            return httpx.Response(404, json={"kind": "Status", "reason": "NotFound"})

        async with KubernetesApiClient(
            CONTEXTS, transport=httpx.MockTransport(handler)
        ) as client:
            yield client

    async def test_reads_replica_counts(self, client, requests, responses):
        # Arrange
        path = "/apis/apps/v1/namespaces/auth/deployments/auth-api"
        responses[path] = httpx.Response(
            200,
            json=_deployment(
                replicas=3,
                ready=2,
                conditions=[
                    {"type": "Available", "lastUpdateTime": "2024-05-01T10:00:00Z"},
                    {"type": "Progressing", "lastUpdateTime": "2024-05-01T11:00:00Z"},
                ],
            ),
        )

        # Act
        status = await client.get_deployment_status("prod-cluster", "auth", "auth-api")

        # Assert
        assert status.ready_replicas == 2
        assert status.desired_replicas == 3
        assert status.last_updated.hour == 11
        assert requests[0].url.host == "k8s.prod.example.com"
        assert requests[0].headers["Authorization"] == "Bearer secret"

    async def test_missing_ready_replicas_is_zero(self, client, responses):
        responses["/apis/apps/v1/namespaces/auth/deployments/auth-api"] = httpx.Response(
            200, json=_deployment(replicas=0)
        )

        status = await client.get_deployment_status("prod-cluster", "auth", "auth-api")

        assert status.ready_replicas == 0
        assert status.desired_replicas == 0

    async def test_http_error_raises_collaborator_error(self, client):
        with pytest.raises(CollaboratorUnavailableError, match="404"):
            await client.get_deployment_status("prod-cluster", "auth", "missing")

    async def test_unknown_context(self, client, requests):
        with pytest.raises(CollaboratorUnavailableError, match="unknown kubernetes context"):
            await client.get_deployment_status("dev-cluster", "auth", "auth-api")

        assert requests == []

    async def test_connection_error_retried_then_raised(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        async with KubernetesApiClient(
            CONTEXTS, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(CollaboratorUnavailableError, match="failed to connect"):
                await client.get_deployment_status("prod-cluster", "auth", "auth-api")

        assert len(attempts) == 3

    async def test_non_json_body_raises_collaborator_error(self, client, responses):
        responses["/apis/apps/v1/namespaces/auth/deployments/auth-api"] = httpx.Response(
            200, text="<html>proxy login</html>"
        )

        with pytest.raises(CollaboratorUnavailableError, match="invalid deployment payload"):
            await client.get_deployment_status("prod-cluster", "auth", "auth-api")

    @pytest.mark.parametrize(
        "payload",
        [
            ["not", "a", "deployment"],
            {"spec": {"replicas": "three"}, "status": {}},
            {
                "spec": {"replicas": 1},
                "status": {"conditions": [{"lastUpdateTime": "yesterday"}]},
            },
        ],
        ids=["list-body", "non-numeric-replicas", "bad-timestamp"],
    )
    async def test_malformed_deployment_raises_collaborator_error(
        self, client, responses, payload
    ):
        responses["/apis/apps/v1/namespaces/auth/deployments/auth-api"] = httpx.Response(
            200, json=payload
        )

        with pytest.raises(CollaboratorUnavailableError, match="invalid deployment payload"):
            await client.get_deployment_status("prod-cluster", "auth", "auth-api")


class TestHealthWithKubernetesApiClient:
    """Test health aggregation against a misbehaving API server."""

    async def test_unreadable_response_reports_unknown(
        self, repository, make_service, make_environment
    ):
        # Arrange
        await repository.create(
            make_service(
                version=1,
                environments=[make_environment("production", [("auth-api", 3)])],
            )
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy login</html>")

        async with KubernetesApiClient(
            CONTEXTS, transport=httpx.MockTransport(handler)
        ) as kubernetes:
            controller = ServiceCatalogController(repository=repository, kubernetes=kubernetes)

            # Act
            health = await controller.get_health("auth-api")

        # Assert
        assert health.environments[0].status == ServiceStatus.UNKNOWN
        assert health.environments[0].deployments[0].status == ServiceStatus.UNKNOWN


class TestLoadKubernetesContexts:
    """Test contexts file parsing."""

    def test_load_contexts(self, tmp_path):
        path = tmp_path / "contexts.yaml"
        path.write_text(
            "contexts:\n"
            "  - name: prod-cluster\n"
            "    api_url: https://k8s.prod.example.com\n"
            "    verify_ssl: false\n"
            "  - name: staging\n"
            "    api_url: https://k8s.staging.example.com\n"
        )

        contexts = load_kubernetes_contexts(path)

        assert set(contexts) == {"prod-cluster", "staging"}
        assert contexts["prod-cluster"].verify_ssl is False
        assert contexts["staging"].token == ""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError):
            load_kubernetes_contexts(tmp_path / "missing.yaml")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "contexts.yaml"
        path.write_text("contexts:\n  - api_url: https://no-name\n")

        with pytest.raises(ValueError, match="invalid kubernetes contexts file"):
            load_kubernetes_contexts(path)
