"""Service list entities used by the filter/search/pagination pipeline."""

from dataclasses import dataclass, field

from src.domain.entities.service import Service, ServiceTier


@dataclass
class ServiceFilter:
    """Filtering criteria for service listings.

    Attributes:
        team: Owning GitHub team (case-insensitive equality)
        tier: Service tier
        search: Case-insensitive substring over name, description, team,
            language and framework
        limit: Page size; None means no limit
        offset: Number of matching services to skip
    """

    team: str = ""
    tier: ServiceTier | str | None = None
    search: str = ""
    limit: int | None = None
    offset: int = 0


@dataclass
class ServiceList:
    """A page of services.

    Attributes:
        services: Services in the page
        total: Number of services matching the filter before pagination
        filters: Filter that produced this page
    """

    services: list[Service] = field(default_factory=list)
    total: int = 0
    filters: ServiceFilter | None = None


def matches_search(service: Service, query: str) -> bool:
    """Check if a service matches a free-text query.

    Args:
        service: Service to test
        query: Search text; matched case-insensitively as a substring

    Returns:
        True if any searchable field contains the query
    """
    query = query.lower()
    technology = service.spec.technology
    fields = [
        service.metadata.name,
        service.spec.description,
        service.spec.team.github_team,
        technology.language if technology else "",
        technology.framework if technology else "",
    ]
    return any(query in value.lower() for value in fields)
