"""E2E test fixtures for API layer testing."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.infrastructure.api.dependencies import (
    get_github_service,
    get_kubernetes_service,
    get_service_repository,
    get_versioning_repository,
)
from src.infrastructure.api.main import create_app
from src.infrastructure.storage.filesystem_repository import FilesystemServiceRepository

AUTH_SQUAD_HEADERS = {
    "X-Auth-Request-User": "Test User",
    "X-Auth-Request-Preferred-Username": "u",
    "X-Auth-Request-Email": "u@example.com",
    "X-Auth-Request-Groups": "acme:auth-squad",
}

OTHER_SQUAD_HEADERS = {
    "X-Auth-Request-User": "bob",
    "X-Auth-Request-Email": "bob@example.com",
    "X-Auth-Request-Groups": "acme:other-squad",
}


@pytest.fixture
def catalog_repository(tmp_path) -> FilesystemServiceRepository:
    return FilesystemServiceRepository(tmp_path / "services")


@pytest.fixture
def app(catalog_repository: FilesystemServiceRepository) -> FastAPI:
    """App over a per-test catalog; versioning, Kubernetes and GitHub are off."""
    app = create_app()
    app.dependency_overrides[get_service_repository] = lambda: catalog_repository
    app.dependency_overrides[get_versioning_repository] = lambda: None
    app.dependency_overrides[get_kubernetes_service] = lambda: None
    app.dependency_overrides[get_github_service] = lambda: None
    return app


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Proxy headers of a user in auth-squad."""
    return dict(AUTH_SQUAD_HEADERS)


@pytest.fixture
def other_headers() -> dict[str, str]:
    """Proxy headers of a user in other-squad."""
    return dict(OTHER_SQUAD_HEADERS)


@pytest.fixture
def service_payload():
    """Factory building create/update request bodies."""

    def build(
        name: str = "Auth Api",
        team: str = "auth-squad",
        description: str = "d",
        tier: str = "TIER-1",
        **spec,
    ) -> dict:
        return {
            "apiVersion": "dash-ops.io/v1",
            "kind": "Service",
            "metadata": {"name": name, "tier": tier},
            "spec": {"description": description, "team": {"github_team": team}, **spec},
        }

    return build
