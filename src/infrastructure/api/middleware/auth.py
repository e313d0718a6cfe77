"""User context extraction from the authentication proxy.

Authentication itself happens upstream (an OAuth2 proxy in front of the API).
The proxy forwards the authenticated identity as trusted headers, which are
turned into a UserContext here.
"""

from fastapi import Depends, HTTPException, Request, status

from src.domain.entities.user_context import UserContext

USER_HEADER = "X-Auth-Request-User"
EMAIL_HEADER = "X-Auth-Request-Email"
USERNAME_HEADER = "X-Auth-Request-Preferred-Username"
GROUPS_HEADER = "X-Auth-Request-Groups"


def parse_groups(value: str) -> list[str]:
    """Parse a comma-separated group header into team slugs.

    GitHub groups are forwarded as "org:team"; only the team part is kept.

    Example:
        >>> parse_groups("acme:auth-squad, acme:platform")
        ['auth-squad', 'platform']
    """
    teams = []
    for group in value.split(","):
        team = group.strip().rsplit(":", 1)[-1].strip()
        if team and team not in teams:
            teams.append(team)
    return teams


async def get_user_context(request: Request) -> UserContext | None:
    """Build the caller's UserContext from proxy headers, or None if anonymous."""
    user = request.headers.get(USER_HEADER, "").strip()
    username = request.headers.get(USERNAME_HEADER, "").strip() or user
    if not username:
        return None

    context = UserContext(
        username=username,
        name=user or username,
        email=request.headers.get(EMAIL_HEADER, "").strip(),
        teams=parse_groups(request.headers.get(GROUPS_HEADER, "")),
    )
    request.state.username = context.username
    return context


async def require_user_context(
    user: UserContext | None = Depends(get_user_context),
) -> UserContext:
    """Require an authenticated caller.

    Raises:
        HTTPException: 401 if no identity was forwarded
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user
