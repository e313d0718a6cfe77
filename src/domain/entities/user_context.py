"""User context supplied by the authentication layer."""

from dataclasses import dataclass, field


@dataclass
class UserContext:
    """Authenticated caller identity plus team memberships.

    Attributes:
        username: Login name, recorded in audit fields
        name: Display name
        email: E-mail address
        teams: GitHub team slugs the user belongs to
    """

    username: str
    name: str = ""
    email: str = ""
    teams: list[str] = field(default_factory=list)

    def has_team(self, team: str) -> bool:
        """Check membership of a team (case-insensitive)."""
        return any(user_team.lower() == team.lower() for user_team in self.teams)

    def has_any_team(self, teams: list[str]) -> bool:
        return any(self.has_team(team) for team in teams)
