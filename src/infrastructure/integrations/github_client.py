"""GitHub REST API integration for team membership."""

import time
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.exceptions import CollaboratorUnavailableError
from src.domain.repositories.github_service import GitHubServiceInterface, TeamInfo
from src.infrastructure.observability.logging import get_logger
from src.infrastructure.observability.metrics import record_collaborator_request

logger = get_logger(__name__)

GITHUB_API_VERSION = "2022-11-28"
MEMBERS_PAGE_SIZE = 100


class GitHubTeamClient(GitHubServiceInterface):
    """Client resolving GitHub teams to their member logins.

    Attributes:
        api_url: GitHub REST API base URL
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        token: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client connection."""
        await self.client.aclose()

    async def __aenter__(self) -> "GitHubTeamClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_team_info(self, org: str, team: str) -> TeamInfo:
        """Get a team and its member logins.

        Args:
            org: GitHub organization
            team: Team slug

        Returns:
            TeamInfo with members

        Raises:
            CollaboratorUnavailableError: If GitHub cannot be queried or
                returns an unreadable response
        """
        start_time = time.perf_counter()
        try:
            team_data = await self._get_json(f"/orgs/{org}/teams/{team}")
            members = await self._get_json(
                f"/orgs/{org}/teams/{team}/members",
                params={"per_page": MEMBERS_PAGE_SIZE},
            )
            info = self._parse_team(team, team_data, members)
        except httpx.HTTPStatusError as e:
            record_collaborator_request("github", "failure", time.perf_counter() - start_time)
            raise CollaboratorUnavailableError(
                f"GitHub returned {e.response.status_code} for team '{org}/{team}'"
            ) from e
        except httpx.RequestError as e:
            record_collaborator_request("github", "failure", time.perf_counter() - start_time)
            raise CollaboratorUnavailableError(f"failed to connect to GitHub: {e}") from e
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            record_collaborator_request("github", "failure", time.perf_counter() - start_time)
            logger.warning("github_invalid_response", org=org, team=team, error=str(e))
            raise CollaboratorUnavailableError(
                f"invalid GitHub response for team '{org}/{team}'"
            ) from e

        record_collaborator_request("github", "success", time.perf_counter() - start_time)
        return info

    @staticmethod
    def _parse_team(team: str, team_data: Any, members: Any) -> TeamInfo:
        if not isinstance(members, list):
            raise TypeError(f"expected a list of members, got {type(members).__name__}")

        return TeamInfo(
            id=str(team_data.get("id", "")),
            name=team_data.get("name") or team,
            slug=team_data.get("slug") or team,
            description=team_data.get("description") or "",
            members=[member["login"] for member in members if member.get("login")],
            url=team_data.get("html_url") or "",
        )

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()
