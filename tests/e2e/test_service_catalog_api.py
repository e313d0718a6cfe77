"""E2E tests for the service catalog API."""

import pytest

BASE_URL = "/api/v1/service-catalog"


@pytest.fixture
async def created_service(async_client, auth_headers, service_payload):
    response = await async_client.post(
        f"{BASE_URL}/services", json=service_payload(), headers=auth_headers
    )
    assert response.status_code == 201
    return response.json()


class TestCreateService:
    """Tests for POST /services."""

    async def test_create_then_get(self, async_client, created_service):
        """A display name is normalized and audit fields are filled in."""
        assert created_service["metadata"]["name"] == "auth-api"
        assert created_service["apiVersion"] == "dash-ops.io/v1"

        response = await async_client.get(f"{BASE_URL}/services/auth-api")

        assert response.status_code == 200
        metadata = response.json()["metadata"]
        assert metadata["name"] == "auth-api"
        assert metadata["version"] == 1
        assert metadata["created_by"] == "u"

    async def test_create_requires_authentication(self, async_client, service_payload):
        response = await async_client.post(f"{BASE_URL}/services", json=service_payload())

        assert response.status_code == 401
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["detail"] == "Authentication required"

    async def test_create_for_foreign_team_forbidden(
        self, async_client, other_headers, service_payload
    ):
        response = await async_client.post(
            f"{BASE_URL}/services", json=service_payload(), headers=other_headers
        )

        assert response.status_code == 403
        assert response.json()["type"] == "https://dash-ops.io/errors/permission-denied"

    async def test_invalid_descriptor_rejected(self, async_client, auth_headers, service_payload):
        response = await async_client.post(
            f"{BASE_URL}/services",
            json=service_payload(tier="TIER-7"),
            headers=auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["field"] == "metadata.tier"
        assert body["title"] == "Validation Failed"
        assert "correlation_id" in body

    async def test_duplicate_rejected(
        self, async_client, auth_headers, service_payload, created_service
    ):
        response = await async_client.post(
            f"{BASE_URL}/services", json=service_payload(name="auth-api"), headers=auth_headers
        )

        assert response.status_code == 409
        assert response.json()["type"].endswith("/service-exists")

    async def test_malformed_body_is_422(self, async_client, auth_headers):
        response = await async_client.post(
            f"{BASE_URL}/services", json={"spec": {}}, headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["title"] == "Unprocessable Entity"


class TestGetService:
    """Tests for GET /services/{name}."""

    async def test_missing_service_is_problem_details(self, async_client):
        response = await async_client.get(
            f"{BASE_URL}/services/ghost", headers={"X-Correlation-ID": "req-123"}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["type"] == "https://dash-ops.io/errors/service-not-found"
        assert body["status"] == 404
        assert body["instance"] == f"{BASE_URL}/services/ghost"
        assert body["correlation_id"] == "req-123"
        assert response.headers["X-Correlation-ID"] == "req-123"

    async def test_unknown_route_is_problem_details(self, async_client):
        response = await async_client.get("/api/v1/no-such-route")

        assert response.status_code == 404
        assert response.json()["title"] == "Not Found"


class TestUpdateService:
    """Tests for PUT /services/{name}."""

    async def test_update_bumps_version(
        self, async_client, auth_headers, service_payload, created_service
    ):
        response = await async_client.put(
            f"{BASE_URL}/services/auth-api",
            json=service_payload(name="auth-api", description="d2"),
            headers=auth_headers,
        )

        assert response.status_code == 200
        stored = (await async_client.get(f"{BASE_URL}/services/auth-api")).json()
        assert stored["metadata"]["version"] == 2
        assert stored["metadata"]["updated_by"] == "u"
        assert stored["metadata"]["created_by"] == "u"
        assert stored["spec"]["description"] == "d2"

    async def test_name_taken_from_path(
        self, async_client, auth_headers, service_payload, created_service
    ):
        response = await async_client.put(
            f"{BASE_URL}/services/auth-api",
            json=service_payload(name="", description="d2"),
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["name"] == "auth-api"

    async def test_name_mismatch_rejected(
        self, async_client, auth_headers, service_payload, created_service
    ):
        response = await async_client.put(
            f"{BASE_URL}/services/auth-api",
            json=service_payload(name="billing-api"),
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["field"] == "metadata.name"

    async def test_foreign_team_denied(
        self, async_client, other_headers, service_payload, created_service
    ):
        response = await async_client.put(
            f"{BASE_URL}/services/auth-api",
            json=service_payload(name="auth-api", description="hijacked"),
            headers=other_headers,
        )

        assert response.status_code == 403
        stored = (await async_client.get(f"{BASE_URL}/services/auth-api")).json()
        assert stored["spec"]["description"] == "d"
        assert stored["metadata"]["version"] == 1

    async def test_stale_version_conflicts(
        self, async_client, auth_headers, service_payload, created_service
    ):
        payload = service_payload(name="auth-api", description="d2")
        payload["metadata"]["version"] = 1
        first = await async_client.put(
            f"{BASE_URL}/services/auth-api", json=payload, headers=auth_headers
        )
        second = await async_client.put(
            f"{BASE_URL}/services/auth-api", json=payload, headers=auth_headers
        )

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["type"].endswith("/version-conflict")


class TestDeleteService:
    """Tests for DELETE /services/{name}."""

    async def test_delete(self, async_client, auth_headers, created_service):
        response = await async_client.delete(
            f"{BASE_URL}/services/auth-api", headers=auth_headers
        )

        assert response.status_code == 204
        assert (await async_client.get(f"{BASE_URL}/services/auth-api")).status_code == 404

    async def test_delete_requires_authentication(self, async_client, created_service):
        response = await async_client.delete(f"{BASE_URL}/services/auth-api")

        assert response.status_code == 401

    async def test_delete_foreign_team_denied(self, async_client, other_headers, created_service):
        response = await async_client.delete(
            f"{BASE_URL}/services/auth-api", headers=other_headers
        )

        assert response.status_code == 403


class TestListServices:
    """Tests for listing, search and derived queries."""

    @pytest.fixture
    async def populated(self, catalog_repository, make_service):
        names = {
            "team-a": ["alpha-api", "beta-worker", "gamma-api", "delta-api", "epsilon-db", "zeta-api"],
            "team-b": ["eta-api", "theta-api", "iota-cron", "kappa-api"],
        }
        for team, services in names.items():
            for name in services:
                await catalog_repository.create(
                    make_service(
                        name=name,
                        team=team,
                        description=f"{name} service",
                        version=1,
                        tier="TIER-3" if name == "iota-cron" else "TIER-1",
                    )
                )

    async def test_filter_search_paginate(self, async_client, populated):
        response = await async_client.get(
            f"{BASE_URL}/services",
            params={"team": "team-a", "search": "api", "limit": 2, "offset": 2},
        )

        assert response.status_code == 200
        body = response.json()
        assert [s["metadata"]["name"] for s in body["services"]] == ["delta-api", "zeta-api"]
        assert body["total"] == 4
        assert body["limit"] == 2
        assert body["offset"] == 2

    async def test_list_all(self, async_client, populated):
        body = (await async_client.get(f"{BASE_URL}/services")).json()

        assert body["total"] == 10
        assert len(body["services"]) == 10

    async def test_tier_filter_case_insensitive(self, async_client, populated):
        body = (await async_client.get(f"{BASE_URL}/services", params={"tier": "tier-3"})).json()

        assert [s["metadata"]["name"] for s in body["services"]] == ["iota-cron"]

    async def test_corrupt_file_tolerated(self, async_client, populated, catalog_repository):
        (catalog_repository.directory / "broken.yaml").write_text("spec: [\n")

        response = await async_client.get(f"{BASE_URL}/services")

        assert response.status_code == 200
        assert response.json()["total"] == 10

    async def test_search(self, async_client, populated):
        response = await async_client.get(
            f"{BASE_URL}/services/search", params={"q": "cron"}
        )

        assert [s["metadata"]["name"] for s in response.json()] == ["iota-cron"]

    async def test_by_team(self, async_client, populated):
        response = await async_client.get(f"{BASE_URL}/services/by-team/team-b")

        assert len(response.json()) == 4

    async def test_by_tier(self, async_client, populated):
        response = await async_client.get(f"{BASE_URL}/services/by-tier/tier-1")

        assert len(response.json()) == 9


class TestHealthAndContext:
    """Tests for health, history, dependencies and deployment resolution."""

    @pytest.fixture
    async def with_environments(self, catalog_repository, make_service, make_environment):
        await catalog_repository.create(
            make_service(
                version=1,
                dependencies=["user-db"],
                environments=[make_environment("production", [("auth-api", 3)])],
            )
        )

    async def test_health_unknown_without_kubernetes(self, async_client, with_environments):
        response = await async_client.get(f"{BASE_URL}/services/auth-api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["overall_status"] == "unknown"
        assert body["environments"][0]["deployments"][0]["desired_replicas"] == 3

    async def test_batch_health_skips_unknown(self, async_client, with_environments):
        response = await async_client.post(
            f"{BASE_URL}/services/health/batch", json={"services": ["auth-api", "ghost"]}
        )

        assert response.status_code == 200
        assert [s["service_name"] for s in response.json()["services"]] == ["auth-api"]

    async def test_history_empty_without_versioning(self, async_client, with_environments):
        response = await async_client.get(f"{BASE_URL}/services/auth-api/history")

        assert response.json() == {"service_name": "auth-api", "history": []}

    async def test_dependencies(self, async_client, with_environments):
        response = await async_client.get(f"{BASE_URL}/services/auth-api/dependencies")

        assert response.json() == {
            "service_name": "auth-api",
            "dependencies": [],
            "missing": ["user-db"],
        }

    async def test_resolve_deployment(self, async_client, with_environments):
        response = await async_client.get(
            f"{BASE_URL}/context/deployment/auth-api", params={"namespace": "auth"}
        )

        body = response.json()
        assert body["found"] is True
        assert body["service_name"] == "auth-api"
        assert body["environment"] == "production"
        assert body["context"] == "prod-cluster"

    async def test_resolve_unknown_deployment(self, async_client, with_environments):
        response = await async_client.get(f"{BASE_URL}/context/deployment/ghost")

        assert response.status_code == 200
        assert response.json()["found"] is False


class TestSystemEndpoints:
    """Tests for system status and liveness."""

    async def test_system_status(self, async_client, created_service, catalog_repository):
        response = await async_client.get(f"{BASE_URL}/system/status")

        assert response.status_code == 200
        body = response.json()
        assert body["versioning"] == {"enabled": False, "status": "Versioning not configured"}
        assert body["storage"]["provider"] == "filesystem"
        assert body["storage"]["service_count"] == 1
        assert body["storage"]["location"] == str(catalog_repository.directory.resolve())

    async def test_catalog_history_empty(self, async_client):
        response = await async_client.get(f"{BASE_URL}/system/history")

        assert response.json() == {"history": []}

    async def test_readiness(self, async_client, created_service):
        response = await async_client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json()["services"] == 1

    async def test_root(self, async_client):
        response = await async_client.get("/")

        assert response.json()["name"] == "DashOps Service Catalog API"
