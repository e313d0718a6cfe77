"""Service health entities.

Health is computed at query time from Kubernetes deployment state and rolled
up per environment and per service.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ServiceStatus(str, Enum):
    """Operational status of a deployment, environment or service."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


@dataclass
class DeploymentHealth:
    """Replica-level health of one deployment."""

    name: str
    ready_replicas: int
    desired_replicas: int
    status: ServiceStatus
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class EnvironmentHealth:
    """Health of one environment, the worst of its deployments."""

    name: str
    context: str
    status: ServiceStatus
    deployments: list[DeploymentHealth] = field(default_factory=list)


@dataclass
class ServiceHealth:
    """Tier-weighted health of a service across its environments."""

    service_name: str
    overall_status: ServiceStatus
    environments: list[EnvironmentHealth] = field(default_factory=list)
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
