"""Pydantic schemas for the service catalog API.

Request and response bodies mirror the Service aggregate with the same keys
as the YAML descriptor files. Invariants are not enforced here: malformed
descriptors reach ServiceValidator and are rejected with a field name.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.application.dtos.service_catalog_dto import DependencyClosure, VersioningStatus
from src.domain.entities.service import (
    DEFAULT_API_VERSION,
    DEFAULT_KIND,
    KubernetesDeployment,
    KubernetesEnvironment,
    KubernetesEnvironmentResources,
    KubernetesResourceRequests,
    KubernetesResourceSpec,
    Service,
    ServiceBusiness,
    ServiceContext,
    ServiceKubernetes,
    ServiceMetadata,
    ServiceObservability,
    ServiceRunbook,
    ServiceSpec,
    ServiceTeam,
    ServiceTechnology,
    ServiceTier,
)
from src.domain.entities.service_change import ServiceChange, ServiceHistory
from src.domain.entities.service_health import (
    DeploymentHealth,
    EnvironmentHealth,
    ServiceHealth,
)
from src.domain.entities.service_list import ServiceList


class ResourceSpecApiModel(BaseModel):
    """CPU and memory quantities."""

    cpu: str = Field(default="", description="CPU quantity (e.g., 100m, 0.5)")
    memory: str = Field(default="", description="Memory quantity (e.g., 128Mi)")


class ResourceRequestsApiModel(BaseModel):
    requests: ResourceSpecApiModel = Field(default_factory=ResourceSpecApiModel)
    limits: ResourceSpecApiModel = Field(default_factory=ResourceSpecApiModel)


class DeploymentApiModel(BaseModel):
    """Deployment of a service in one environment."""

    name: str = ""
    replicas: int = Field(default=1, description="Declared replicas (1-100)")
    resources: ResourceRequestsApiModel = Field(default_factory=ResourceRequestsApiModel)


class EnvironmentResourcesApiModel(BaseModel):
    deployments: list[DeploymentApiModel] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)
    configmaps: list[str] = Field(default_factory=list)


class EnvironmentApiModel(BaseModel):
    """A (cluster context, namespace) location of the service."""

    name: str = ""
    context: str = ""
    namespace: str = ""
    resources: EnvironmentResourcesApiModel = Field(
        default_factory=EnvironmentResourcesApiModel
    )


class KubernetesApiModel(BaseModel):
    environments: list[EnvironmentApiModel] = Field(default_factory=list)


class TeamApiModel(BaseModel):
    github_team: str = Field(default="", description="Owning GitHub team slug")
    members: list[str] = Field(default_factory=list)
    github_url: str = ""


class BusinessApiModel(BaseModel):
    sla_target: str = ""
    dependencies: list[str] = Field(
        default_factory=list, description="Names of services this one depends on"
    )
    impact: str = Field(default="", description="Business impact (high, medium, low)")


class TechnologyApiModel(BaseModel):
    language: str = ""
    framework: str = ""


class ObservabilityApiModel(BaseModel):
    metrics: str = ""
    logs: str = ""
    traces: str = ""


class RunbookApiModel(BaseModel):
    name: str = ""
    url: str = ""


class MetadataApiModel(BaseModel):
    """Service identification and audit fields.

    Audit fields are set by the server; version is the revision an update
    was based on (0 skips the check).
    """

    name: str = Field(default="", description="Service name (e.g., auth-api)")
    tier: str = Field(default=ServiceTier.STANDARD.value, description="TIER-1, TIER-2 or TIER-3")
    created_at: datetime | None = None
    created_by: str = ""
    updated_at: datetime | None = None
    updated_by: str = ""
    version: int = 0


class SpecApiModel(BaseModel):
    description: str = ""
    team: TeamApiModel = Field(default_factory=TeamApiModel)
    business: BusinessApiModel = Field(default_factory=BusinessApiModel)
    technology: TechnologyApiModel | None = None
    kubernetes: KubernetesApiModel | None = None
    observability: ObservabilityApiModel | None = None
    runbooks: list[RunbookApiModel] = Field(default_factory=list)


class ServiceApiModel(BaseModel):
    """Service descriptor as sent and returned by the API."""

    api_version: str = Field(default=DEFAULT_API_VERSION, alias="apiVersion")
    kind: str = DEFAULT_KIND
    metadata: MetadataApiModel
    spec: SpecApiModel = Field(default_factory=SpecApiModel)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "apiVersion": "dash-ops.io/v1",
                "kind": "Service",
                "metadata": {"name": "auth-api", "tier": "TIER-1"},
                "spec": {
                    "description": "Authentication API",
                    "team": {"github_team": "auth-squad"},
                    "business": {"dependencies": ["user-db"], "impact": "high"},
                    "kubernetes": {
                        "environments": [
                            {
                                "name": "production",
                                "context": "prod-cluster",
                                "namespace": "auth",
                                "resources": {
                                    "deployments": [{"name": "auth-api", "replicas": 3}]
                                },
                            }
                        ]
                    },
                },
            }
        },
    )

    def to_entity(self) -> Service:
        """Convert to the domain aggregate."""
        spec = self.spec
        return Service(
            api_version=self.api_version,
            kind=self.kind,
            metadata=ServiceMetadata(
                name=self.metadata.name,
                tier=self.metadata.tier,
                created_at=self.metadata.created_at,
                created_by=self.metadata.created_by,
                updated_at=self.metadata.updated_at,
                updated_by=self.metadata.updated_by,
                version=self.metadata.version,
            ),
            spec=ServiceSpec(
                description=spec.description,
                team=ServiceTeam(**spec.team.model_dump()),
                business=ServiceBusiness(**spec.business.model_dump()),
                technology=(
                    ServiceTechnology(**spec.technology.model_dump())
                    if spec.technology
                    else None
                ),
                kubernetes=(
                    ServiceKubernetes(
                        environments=[
                            _environment_to_entity(env) for env in spec.kubernetes.environments
                        ]
                    )
                    if spec.kubernetes
                    else None
                ),
                observability=(
                    ServiceObservability(**spec.observability.model_dump())
                    if spec.observability
                    else None
                ),
                runbooks=[ServiceRunbook(name=rb.name, url=rb.url) for rb in spec.runbooks],
            ),
        )

    @classmethod
    def from_entity(cls, service: Service) -> "ServiceApiModel":
        """Build the API representation of a domain aggregate."""
        spec = service.spec
        tier = service.metadata.tier
        return cls(
            api_version=service.api_version,
            kind=service.kind,
            metadata=MetadataApiModel(
                name=service.metadata.name,
                tier=tier.value if isinstance(tier, ServiceTier) else tier,
                created_at=service.metadata.created_at,
                created_by=service.metadata.created_by,
                updated_at=service.metadata.updated_at,
                updated_by=service.metadata.updated_by,
                version=service.metadata.version,
            ),
            spec=SpecApiModel(
                description=spec.description,
                team=TeamApiModel(
                    github_team=spec.team.github_team,
                    members=list(spec.team.members),
                    github_url=spec.team.github_url,
                ),
                business=BusinessApiModel(
                    sla_target=spec.business.sla_target,
                    dependencies=list(spec.business.dependencies),
                    impact=spec.business.impact,
                ),
                technology=(
                    TechnologyApiModel(
                        language=spec.technology.language,
                        framework=spec.technology.framework,
                    )
                    if spec.technology
                    else None
                ),
                kubernetes=(
                    KubernetesApiModel(
                        environments=[
                            _environment_from_entity(env) for env in spec.kubernetes.environments
                        ]
                    )
                    if spec.kubernetes
                    else None
                ),
                observability=(
                    ObservabilityApiModel(
                        metrics=spec.observability.metrics,
                        logs=spec.observability.logs,
                        traces=spec.observability.traces,
                    )
                    if spec.observability
                    else None
                ),
                runbooks=[RunbookApiModel(name=rb.name, url=rb.url) for rb in spec.runbooks],
            ),
        )


class ServiceListApiResponse(BaseModel):
    """A page of services."""

    services: list[ServiceApiModel] = Field(default_factory=list)
    total: int = Field(..., description="Services matching the filter before pagination")
    limit: int | None = None
    offset: int = 0

    @classmethod
    def from_entity(cls, page: ServiceList) -> "ServiceListApiResponse":
        filters = page.filters
        return cls(
            services=[ServiceApiModel.from_entity(service) for service in page.services],
            total=page.total,
            limit=filters.limit if filters else None,
            offset=filters.offset if filters else 0,
        )


class DeploymentHealthApiModel(BaseModel):
    name: str
    ready_replicas: int
    desired_replicas: int
    status: str
    last_updated: datetime

    @classmethod
    def from_entity(cls, health: DeploymentHealth) -> "DeploymentHealthApiModel":
        return cls(
            name=health.name,
            ready_replicas=health.ready_replicas,
            desired_replicas=health.desired_replicas,
            status=health.status.value,
            last_updated=health.last_updated,
        )


class EnvironmentHealthApiModel(BaseModel):
    name: str
    context: str
    status: str
    deployments: list[DeploymentHealthApiModel] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, health: EnvironmentHealth) -> "EnvironmentHealthApiModel":
        return cls(
            name=health.name,
            context=health.context,
            status=health.status.value,
            deployments=[DeploymentHealthApiModel.from_entity(d) for d in health.deployments],
        )


class ServiceHealthApiResponse(BaseModel):
    """Tier-weighted health of a service."""

    service_name: str
    overall_status: str = Field(
        ..., description="healthy, degraded, down, critical or unknown"
    )
    environments: list[EnvironmentHealthApiModel] = Field(default_factory=list)
    last_updated: datetime

    @classmethod
    def from_entity(cls, health: ServiceHealth) -> "ServiceHealthApiResponse":
        return cls(
            service_name=health.service_name,
            overall_status=health.overall_status.value,
            environments=[EnvironmentHealthApiModel.from_entity(e) for e in health.environments],
            last_updated=health.last_updated,
        )


class BatchHealthApiRequest(BaseModel):
    services: list[str] = Field(..., min_length=1, max_length=100)


class BatchHealthApiResponse(BaseModel):
    services: list[ServiceHealthApiResponse] = Field(default_factory=list)


class ServiceChangeApiModel(BaseModel):
    commit: str
    author: str
    email: str
    timestamp: datetime
    message: str

    @classmethod
    def from_entity(cls, change: ServiceChange) -> "ServiceChangeApiModel":
        return cls(
            commit=change.commit,
            author=change.author,
            email=change.email,
            timestamp=change.timestamp,
            message=change.message,
        )


class ServiceHistoryApiResponse(BaseModel):
    service_name: str
    history: list[ServiceChangeApiModel] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, history: ServiceHistory) -> "ServiceHistoryApiResponse":
        return cls(
            service_name=history.service_name,
            history=[ServiceChangeApiModel.from_entity(c) for c in history.history],
        )


class CatalogHistoryApiResponse(BaseModel):
    history: list[ServiceChangeApiModel] = Field(default_factory=list)


class DependencyClosureApiResponse(BaseModel):
    service_name: str
    dependencies: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, closure: DependencyClosure) -> "DependencyClosureApiResponse":
        return cls(
            service_name=closure.service_name,
            dependencies=list(closure.dependencies),
            missing=list(closure.missing),
        )


class ServiceContextApiResponse(BaseModel):
    """Service owning a Kubernetes deployment."""

    found: bool
    service_name: str | None = None
    service_tier: str | None = None
    team: str | None = None
    environment: str | None = None
    namespace: str | None = None
    context: str | None = None

    @classmethod
    def from_entity(cls, context: ServiceContext | None) -> "ServiceContextApiResponse":
        if context is None:
            return cls(found=False)

        tier = context.service.metadata.tier
        return cls(
            found=context.found,
            service_name=context.service.metadata.name,
            service_tier=tier.value if isinstance(tier, ServiceTier) else tier,
            team=context.service.spec.team.github_team,
            environment=context.environment,
            namespace=context.namespace,
            context=context.context,
        )


class VersioningStatusApiModel(BaseModel):
    enabled: bool
    status: str

    @classmethod
    def from_entity(cls, status: VersioningStatus) -> "VersioningStatusApiModel":
        return cls(enabled=status.enabled, status=status.status)


class StorageStatusApiModel(BaseModel):
    provider: str
    location: str
    service_count: int
    last_modified: datetime | None = None


class SystemStatusApiResponse(BaseModel):
    versioning: VersioningStatusApiModel
    storage: StorageStatusApiModel


def _environment_to_entity(env: EnvironmentApiModel) -> KubernetesEnvironment:
    return KubernetesEnvironment(
        name=env.name,
        context=env.context,
        namespace=env.namespace,
        resources=KubernetesEnvironmentResources(
            deployments=[
                KubernetesDeployment(
                    name=dep.name,
                    replicas=dep.replicas,
                    resources=KubernetesResourceRequests(
                        requests=KubernetesResourceSpec(**dep.resources.requests.model_dump()),
                        limits=KubernetesResourceSpec(**dep.resources.limits.model_dump()),
                    ),
                )
                for dep in env.resources.deployments
            ],
            services=list(env.resources.services),
            configmaps=list(env.resources.configmaps),
        ),
    )


def _environment_from_entity(env: KubernetesEnvironment) -> EnvironmentApiModel:
    return EnvironmentApiModel(
        name=env.name,
        context=env.context,
        namespace=env.namespace,
        resources=EnvironmentResourcesApiModel(
            deployments=[
                DeploymentApiModel(
                    name=dep.name,
                    replicas=dep.replicas,
                    resources=ResourceRequestsApiModel(
                        requests=ResourceSpecApiModel(
                            cpu=dep.resources.requests.cpu,
                            memory=dep.resources.requests.memory,
                        ),
                        limits=ResourceSpecApiModel(
                            cpu=dep.resources.limits.cpu,
                            memory=dep.resources.limits.memory,
                        ),
                    ),
                )
                for dep in env.resources.deployments
            ],
            services=list(env.resources.services),
            configmaps=list(env.resources.configmaps),
        ),
    )
