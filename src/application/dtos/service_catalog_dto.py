"""DTOs for service catalog operations that return more than an entity."""

from dataclasses import dataclass, field


@dataclass
class VersioningStatus:
    """State of the change-history backend."""

    enabled: bool
    status: str


@dataclass
class DependencyClosure:
    """Transitive dependencies of a service.

    Attributes:
        service_name: Root service
        dependencies: Every service reachable through spec.business.dependencies,
            in breadth-first discovery order, excluding the root
        missing: Referenced names that are not in the catalog
    """

    service_name: str
    dependencies: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
