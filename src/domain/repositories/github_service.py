"""GitHub collaborator interface.

Resolves GitHub teams to their members. Only used to enrich responses.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class TeamInfo:
    """GitHub team information."""

    id: str
    name: str
    slug: str
    description: str = ""
    members: list[str] = field(default_factory=list)
    url: str = ""


class GitHubServiceInterface(ABC):
    """Interface for GitHub team lookups."""

    @abstractmethod
    async def get_team_info(self, org: str, team: str) -> TeamInfo:
        """Get a team and its member logins.

        Raises:
            CollaboratorUnavailableError: If GitHub cannot be queried
        """
        pass
