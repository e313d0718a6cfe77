"""Integration tests for the GitHub team client.

Uses httpx.MockTransport to simulate GitHub REST responses.
"""

import httpx
import pytest

from src.application.use_cases.service_catalog_controller import ServiceCatalogController
from src.domain.exceptions import CollaboratorUnavailableError
from src.infrastructure.integrations.github_client import GitHubTeamClient


def _github_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/orgs/acme/teams/auth-squad":
        return httpx.Response(
            200,
            json={
                "id": 42,
                "name": "Auth Squad",
                "slug": "auth-squad",
                "description": "Identity services",
                "html_url": "https://github.com/orgs/acme/teams/auth-squad",
            },
        )
    if path == "/orgs/acme/teams/auth-squad/members":
        return httpx.Response(200, json=[{"login": "alice"}, {"login": "bob"}, {"id": 3}])
    return httpx.Response(404, json={"message": "Not Found"})


class TestGitHubTeamClient:
    """Test team lookups."""

    @pytest.fixture
    async def client(self):
        async with GitHubTeamClient(
            token="ghp_test", transport=httpx.MockTransport(_github_handler)
        ) as client:
            yield client

    async def test_get_team_info(self, client):
        info = await client.get_team_info("acme", "auth-squad")

        assert info.id == "42"
        assert info.name == "Auth Squad"
        assert info.description == "Identity services"
        assert info.members == ["alice", "bob"]
        assert info.url == "https://github.com/orgs/acme/teams/auth-squad"

    async def test_request_headers(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _github_handler(request)

        async with GitHubTeamClient(
            token="ghp_test", transport=httpx.MockTransport(handler)
        ) as client:
            await client.get_team_info("acme", "auth-squad")

        assert seen[0].headers["Authorization"] == "Bearer ghp_test"
        assert seen[0].headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert seen[1].url.params["per_page"] == "100"

    async def test_unknown_team(self, client):
        with pytest.raises(CollaboratorUnavailableError, match="404"):
            await client.get_team_info("acme", "ghosts")

    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with GitHubTeamClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(CollaboratorUnavailableError, match="failed to connect"):
                await client.get_team_info("acme", "auth-squad")

    @pytest.mark.parametrize(
        "members_response",
        [
            httpx.Response(200, text="oops"),
            httpx.Response(200, json={"message": "Bad credentials"}),
            httpx.Response(200, json=["alice", "bob"]),
        ],
        ids=["non-json", "object-body", "bare-logins"],
    )
    async def test_unreadable_members_raise_collaborator_error(self, members_response):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/members"):
                return members_response
            return _github_handler(request)

        async with GitHubTeamClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(CollaboratorUnavailableError, match="invalid GitHub response"):
                await client.get_team_info("acme", "auth-squad")


class TestTeamEnrichmentWithGitHubClient:
    """Test that service reads survive a misbehaving GitHub API."""

    async def test_non_json_response_returns_unenriched_service(self, repository, make_service):
        # Arrange
        await repository.create(make_service(version=1))

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="oops")

        async with GitHubTeamClient(transport=httpx.MockTransport(handler)) as github:
            controller = ServiceCatalogController(
                repository=repository, github=github, github_org="acme"
            )

            # Act
            service = await controller.get("auth-api")

        # Assert
        assert service.metadata.name == "auth-api"
        assert service.spec.team.members == []
        assert service.spec.team.github_url == ""
