"""Service entity module.

This module defines the Service aggregate: a team-owned, tier-aware descriptor
of a logical service and the value objects it is composed of.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

DEFAULT_API_VERSION = "dash-ops.io/v1"
DEFAULT_KIND = "Service"


class ServiceTier(str, Enum):
    """Operational criticality class of a service."""

    CRITICAL = "TIER-1"
    IMPORTANT = "TIER-2"
    STANDARD = "TIER-3"

    @classmethod
    def values(cls) -> list[str]:
        """Return the literal values accepted for a tier."""
        return [tier.value for tier in cls]


@dataclass
class ServiceMetadata:
    """Identification and audit information of a service.

    Attributes:
        name: Business identifier, also the storage key (e.g., "auth-api")
        tier: Criticality tier. Unknown literals are kept as plain strings so
            the validator can reject them with a field name.
        created_at: Creation timestamp (UTC)
        created_by: Username of the creator
        updated_at: Last update timestamp (UTC)
        updated_by: Username of the last updater
        version: Monotonic revision number, 0 until the service is stored
    """

    name: str
    tier: ServiceTier | str = ServiceTier.STANDARD
    created_at: datetime | None = None
    created_by: str = ""
    updated_at: datetime | None = None
    updated_by: str = ""
    version: int = 0

    def __post_init__(self):
        """Coerce known tier literals to ServiceTier."""
        if not isinstance(self.tier, ServiceTier) and self.tier in ServiceTier.values():
            self.tier = ServiceTier(self.tier)


@dataclass
class ServiceTeam:
    """Team ownership of a service."""

    github_team: str
    members: list[str] = field(default_factory=list)
    github_url: str = ""


@dataclass
class ServiceBusiness:
    """Business context: SLA, impact and the services this one depends on."""

    sla_target: str = ""
    dependencies: list[str] = field(default_factory=list)
    impact: str = ""  # high, medium, low


@dataclass
class ServiceTechnology:
    """Technology stack information."""

    language: str = ""
    framework: str = ""


@dataclass
class KubernetesResourceSpec:
    """CPU and memory quantities (e.g., cpu="100m", memory="128Mi")."""

    cpu: str = ""
    memory: str = ""

    def is_empty(self) -> bool:
        return not self.cpu and not self.memory


@dataclass
class KubernetesResourceRequests:
    """Requests and limits of a deployment."""

    requests: KubernetesResourceSpec = field(default_factory=KubernetesResourceSpec)
    limits: KubernetesResourceSpec = field(default_factory=KubernetesResourceSpec)


@dataclass
class KubernetesDeployment:
    """A deployment belonging to a service in one environment."""

    name: str
    replicas: int = 1
    resources: KubernetesResourceRequests = field(
        default_factory=KubernetesResourceRequests
    )


@dataclass
class KubernetesEnvironmentResources:
    """Kubernetes resources owned by a service in one environment."""

    deployments: list[KubernetesDeployment] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    configmaps: list[str] = field(default_factory=list)


@dataclass
class KubernetesEnvironment:
    """A named (cluster context, namespace) location where the service runs."""

    name: str
    context: str
    namespace: str
    resources: KubernetesEnvironmentResources = field(
        default_factory=KubernetesEnvironmentResources
    )

    def get_deployment(self, name: str) -> KubernetesDeployment | None:
        for deployment in self.resources.deployments:
            if deployment.name.lower() == name.lower():
                return deployment
        return None


@dataclass
class ServiceKubernetes:
    """Kubernetes integration configuration."""

    environments: list[KubernetesEnvironment] = field(default_factory=list)


@dataclass
class ServiceObservability:
    """Links to external monitoring tools."""

    metrics: str = ""
    logs: str = ""
    traces: str = ""


@dataclass
class ServiceRunbook:
    """A documentation link."""

    name: str
    url: str


@dataclass
class ServiceSpec:
    """The actual service definition."""

    description: str
    team: ServiceTeam
    business: ServiceBusiness = field(default_factory=ServiceBusiness)
    technology: ServiceTechnology | None = None
    kubernetes: ServiceKubernetes | None = None
    observability: ServiceObservability | None = None
    runbooks: list[ServiceRunbook] = field(default_factory=list)


@dataclass
class Service:
    """Service descriptor, the aggregate root of the catalog.

    Domain invariants (enforced by ServiceValidator and ServiceProcessor):
    - metadata.name uniquely identifies the service and never changes
    - metadata.version increases by one on every update
    - other services are referenced by name only (spec.business.dependencies)

    Attributes:
        metadata: Identification and audit information
        spec: Service definition
        api_version: Descriptor schema version
        kind: Descriptor kind, always "Service"
    """

    metadata: ServiceMetadata
    spec: ServiceSpec
    api_version: str = DEFAULT_API_VERSION
    kind: str = DEFAULT_KIND

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def environments(self) -> list[KubernetesEnvironment]:
        """Kubernetes environments, empty when the service is not on Kubernetes."""
        if self.spec.kubernetes is None:
            return []
        return self.spec.kubernetes.environments

    def is_high_priority(self) -> bool:
        """Check if the service is TIER-1 or TIER-2."""
        return self.metadata.tier in (ServiceTier.CRITICAL, ServiceTier.IMPORTANT)

    def can_be_modified_by(self, teams: list[str]) -> bool:
        """Check if any of the given teams owns this service (case-insensitive)."""
        owner = self.spec.team.github_team.lower()
        return any(team.lower() == owner for team in teams)

    def get_environment(self, name: str) -> KubernetesEnvironment | None:
        for environment in self.environments:
            if environment.name.lower() == name.lower():
                return environment
        return None

    def get_deployment(
        self, environment_name: str, deployment_name: str
    ) -> KubernetesDeployment | None:
        environment = self.get_environment(environment_name)
        if environment is None:
            return None
        return environment.get_deployment(deployment_name)

    def has_dependency(self, name: str) -> bool:
        return any(dep.lower() == name.lower() for dep in self.spec.business.dependencies)


@dataclass
class ServiceContext:
    """Result of resolving which service owns a Kubernetes deployment."""

    service: Service
    environment: str
    namespace: str
    context: str
    found: bool = True
