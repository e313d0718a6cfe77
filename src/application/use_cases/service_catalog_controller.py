"""Service catalog controller.

Orchestrates validator, processor, repository and the optional versioning,
Kubernetes and GitHub collaborators to expose the user-level catalog
operations. Optional collaborators may be None; their steps are skipped.
"""

import asyncio
from collections import deque
from datetime import datetime, timezone

import structlog

from src.application.dtos.service_catalog_dto import DependencyClosure, VersioningStatus
from src.domain.entities.service import KubernetesEnvironment, Service, ServiceContext, ServiceTier
from src.domain.entities.service_change import ChangeAction, ServiceChange, ServiceHistory
from src.domain.entities.service_health import (
    DeploymentHealth,
    EnvironmentHealth,
    ServiceHealth,
    ServiceStatus,
)
from src.domain.entities.service_list import ServiceFilter, ServiceList
from src.domain.entities.user_context import UserContext
from src.domain.exceptions import (
    CollaboratorUnavailableError,
    ServiceAlreadyExistsError,
    ServiceNotFoundError,
    VersionConflictError,
)
from src.domain.repositories.github_service import GitHubServiceInterface
from src.domain.repositories.kubernetes_service import KubernetesServiceInterface
from src.domain.repositories.service_repository import ServiceRepositoryInterface
from src.domain.repositories.versioning_repository import VersioningRepositoryInterface
from src.domain.services.service_processor import ServiceProcessor
from src.domain.services.service_validator import ServiceValidator

logger = structlog.get_logger(__name__)


class ServiceCatalogController:
    """Use-case entry point for the service catalog.

    Write path: prepare -> validate -> permission check -> repository ->
    versioning. Read path with health: repository -> Kubernetes -> processor.

    Collaborator failures never fail a read: health degrades to unknown and
    history to an empty list. Versioning failures after a committed write are
    logged and do not fail the write.
    """

    def __init__(
        self,
        repository: ServiceRepositoryInterface,
        validator: ServiceValidator | None = None,
        processor: ServiceProcessor | None = None,
        versioning: VersioningRepositoryInterface | None = None,
        kubernetes: KubernetesServiceInterface | None = None,
        github: GitHubServiceInterface | None = None,
        github_org: str = "",
    ):
        """Initialize controller with its collaborators.

        Args:
            repository: Service storage
            validator: Descriptor validator
            processor: Descriptor transformer
            versioning: Change history backend (optional)
            kubernetes: Deployment status source (optional)
            github: Team membership source (optional)
            github_org: Organization used for team lookups; empty disables enrichment
        """
        self.repository = repository
        self.validator = validator or ServiceValidator()
        self.processor = processor or ServiceProcessor()
        self.versioning = versioning
        self.kubernetes = kubernetes
        self.github = github
        self.github_org = github_org

    async def create(self, service: Service, user: UserContext | None) -> Service:
        """Create a service.

        The submitted descriptor is normalized first (so display names like
        "Auth Api" become "auth-api"), then validated and checked for
        ownership and uniqueness.

        Args:
            service: Submitted descriptor
            user: Authenticated caller

        Returns:
            The stored service

        Raises:
            ServiceValidationError: If the descriptor is malformed
            PermissionDeniedError: If the user is not in the owning team
            ServiceAlreadyExistsError: If the name is taken
            StorageError: If the repository fails
        """
        prepared = self.processor.prepare_for_creation(service, user)
        self.validator.validate_for_creation(prepared)
        self.validator.validate_user_permissions(prepared, user, "create")

        if await self.repository.exists(prepared.metadata.name):
            raise ServiceAlreadyExistsError(prepared.metadata.name)

        created = await self.repository.create(prepared)
        logger.info(
            "service_created",
            service_name=created.metadata.name,
            tier=_tier_value(created.metadata.tier),
            user=user.username if user else None,
        )

        await self._record_change(created, user, ChangeAction.CREATED)
        return created

    async def get(self, name: str) -> Service:
        """Get a service, enriched with team members when GitHub is configured.

        Raises:
            ServiceNotFoundError: If the service does not exist
        """
        service = await self.repository.get_by_name(name)
        await self._enrich_team(service)
        return service

    async def update(self, service: Service, user: UserContext | None) -> Service:
        """Update a service.

        A non-zero metadata.version in the submitted descriptor is the
        revision the client based its edit on; it must match the stored one.

        Raises:
            ServiceNotFoundError: If the service does not exist
            ServiceValidationError: If the descriptor is malformed or renames the service
            PermissionDeniedError: If the user is not in the current owning team
            VersionConflictError: If the stored revision moved on
        """
        existing = await self.repository.get_by_name(service.metadata.name)

        self.validator.validate_for_update(service, existing)
        self.validator.validate_user_permissions(existing, user, "update")

        submitted_version = service.metadata.version
        if submitted_version and submitted_version != existing.metadata.version:
            raise VersionConflictError(
                existing.metadata.name, submitted_version, existing.metadata.version
            )

        prepared = self.processor.prepare_for_update(service, existing, user)
        updated = await self.repository.update(prepared)

        changes = self.processor.compare_services(existing, updated)
        logger.info(
            "service_updated",
            service_name=updated.metadata.name,
            version=updated.metadata.version,
            changed_fields=[change.field for change in changes],
            user=user.username if user else None,
        )

        await self._record_change(updated, user, ChangeAction.UPDATED)
        return updated

    async def delete(self, name: str, user: UserContext | None) -> None:
        """Delete a service after the ownership check.

        Raises:
            ServiceNotFoundError: If the service does not exist
            PermissionDeniedError: If the user is not in the owning team
        """
        existing = await self.repository.get_by_name(name)
        self.validator.validate_user_permissions(existing, user, "delete")

        await self.repository.delete(name)
        logger.info("service_deleted", service_name=name, user=user.username if user else None)

        await self._record_change(existing, user, ChangeAction.DELETED)

    async def list(self, filter: ServiceFilter | None = None) -> ServiceList:
        services = await self.repository.list(filter)
        return self.processor.process_service_list(services, filter)

    async def list_by_team(self, team: str) -> "list[Service]":
        return await self.repository.list_by_team(team)

    async def list_by_tier(self, tier: ServiceTier | str) -> "list[Service]":
        return await self.repository.list_by_tier(tier)

    async def search(self, query: str, limit: int = 0) -> "list[Service]":
        return await self.repository.search(query, limit)

    async def get_health(self, name: str) -> ServiceHealth:
        """Compute the tier-weighted health of a service.

        Every declared deployment is queried concurrently. A failed query
        marks that deployment unknown; without a Kubernetes collaborator every
        environment is unknown.

        Raises:
            ServiceNotFoundError: If the service does not exist
        """
        service = await self.repository.get_by_name(name)
        return await self._compute_health(service)

    async def get_batch_health(self, names: "list[str]") -> "list[ServiceHealth]":
        """Compute health for several services; unknown names are skipped."""

        async def health_or_none(name: str) -> ServiceHealth | None:
            try:
                return await self.get_health(name)
            except ServiceNotFoundError:
                logger.info("batch_health_service_missing", service_name=name)
                return None

        results = await asyncio.gather(*(health_or_none(name) for name in names))
        return [health for health in results if health is not None]

    async def get_history(self, name: str) -> ServiceHistory:
        """Get the change history of a service, empty without versioning."""
        if not self._versioning_enabled():
            return ServiceHistory(service_name=name)

        try:
            history = await self.versioning.get_service_history(name)
        except CollaboratorUnavailableError as e:
            logger.warning("service_history_unavailable", service_name=name, error=e.message)
            history = []

        return ServiceHistory(service_name=name, history=history)

    async def get_all_history(self) -> "list[ServiceChange]":
        if not self._versioning_enabled():
            return []

        try:
            return await self.versioning.get_all_history()
        except CollaboratorUnavailableError as e:
            logger.warning("catalog_history_unavailable", error=e.message)
            return []

    async def get_versioning_status(self) -> VersioningStatus:
        if self.versioning is None:
            return VersioningStatus(enabled=False, status="Versioning not configured")
        if not self.versioning.is_enabled():
            return VersioningStatus(enabled=False, status="Git versioning disabled")

        try:
            status = await self.versioning.get_status()
        except CollaboratorUnavailableError as e:
            logger.warning("versioning_status_unavailable", error=e.message)
            status = f"Unavailable: {e.message}"

        return VersioningStatus(enabled=True, status=status)

    async def resolve_deployment_service(
        self,
        deployment: str,
        namespace: str = "",
        context: str = "",
    ) -> ServiceContext | None:
        """Find the service that declares a Kubernetes deployment.

        Args:
            deployment: Deployment name (case-insensitive)
            namespace: Restrict to environments in this namespace when given
            context: Restrict to environments in this cluster context when given

        Returns:
            ServiceContext of the first matching environment, or None
        """
        for service in await self.repository.list():
            for environment in service.environments:
                if context and environment.context != context:
                    continue
                if namespace and environment.namespace != namespace:
                    continue
                if environment.get_deployment(deployment) is not None:
                    return ServiceContext(
                        service=service,
                        environment=environment.name,
                        namespace=environment.namespace,
                        context=environment.context,
                    )
        return None

    async def get_dependency_closure(self, name: str) -> DependencyClosure:
        """Walk spec.business.dependencies transitively by name.

        Cycles are cut with a visited set; unknown dependencies are reported
        in missing instead of failing.

        Raises:
            ServiceNotFoundError: If the root service does not exist
        """
        root = await self.repository.get_by_name(name)
        closure = DependencyClosure(service_name=root.metadata.name)

        visited = {root.metadata.name}
        queue = deque(root.spec.business.dependencies)
        while queue:
            dependency = queue.popleft()
            if dependency in visited:
                continue
            visited.add(dependency)

            try:
                service = await self.repository.get_by_name(dependency)
            except ServiceNotFoundError:
                closure.missing.append(dependency)
                continue

            closure.dependencies.append(dependency)
            queue.extend(service.spec.business.dependencies)

        return closure

    async def _compute_health(self, service: Service) -> ServiceHealth:
        environments = await asyncio.gather(
            *(self._environment_health(env) for env in service.environments)
        )
        overall = self.processor.calculate_service_health(
            list(environments), service.metadata.tier
        )
        return ServiceHealth(
            service_name=service.metadata.name,
            overall_status=overall,
            environments=list(environments),
            last_updated=datetime.now(timezone.utc),
        )

    async def _environment_health(self, environment: KubernetesEnvironment) -> EnvironmentHealth:
        deployments = await asyncio.gather(
            *(
                self._deployment_health(environment, deployment.name, deployment.replicas)
                for deployment in environment.resources.deployments
            )
        )
        return EnvironmentHealth(
            name=environment.name,
            context=environment.context,
            status=self.processor.aggregate_environment_status(list(deployments)),
            deployments=list(deployments),
        )

    async def _deployment_health(
        self, environment: KubernetesEnvironment, name: str, declared_replicas: int
    ) -> DeploymentHealth:
        if self.kubernetes is None:
            return DeploymentHealth(
                name=name,
                ready_replicas=0,
                desired_replicas=declared_replicas,
                status=ServiceStatus.UNKNOWN,
            )

        try:
            status = await self.kubernetes.get_deployment_status(
                environment.context, environment.namespace, name
            )
        except (CollaboratorUnavailableError, asyncio.TimeoutError) as e:
            logger.warning(
                "deployment_status_unavailable",
                context=environment.context,
                namespace=environment.namespace,
                deployment=name,
                error=str(e),
            )
            return DeploymentHealth(
                name=name,
                ready_replicas=0,
                desired_replicas=declared_replicas,
                status=ServiceStatus.UNKNOWN,
            )

        return DeploymentHealth(
            name=name,
            ready_replicas=status.ready_replicas,
            desired_replicas=status.desired_replicas,
            status=self.processor.determine_deployment_status(
                status.ready_replicas, status.desired_replicas
            ),
            last_updated=status.last_updated,
        )

    async def _record_change(
        self, service: Service, user: UserContext | None, action: ChangeAction
    ) -> None:
        if not self._versioning_enabled():
            return

        try:
            await self.versioning.record_change(service, user, action)
        except CollaboratorUnavailableError as e:
            logger.error(
                "service_change_not_recorded",
                service_name=service.metadata.name,
                action=action.value,
                error=e.message,
            )

    async def _enrich_team(self, service: Service) -> None:
        team = service.spec.team
        if self.github is None or not self.github_org or not team.github_team:
            return

        try:
            info = await self.github.get_team_info(self.github_org, team.github_team)
        except CollaboratorUnavailableError as e:
            logger.warning(
                "team_enrichment_failed",
                service_name=service.metadata.name,
                team=team.github_team,
                error=e.message,
            )
            return

        if info.members:
            team.members = list(info.members)
        if info.url and not team.github_url:
            team.github_url = info.url

    def _versioning_enabled(self) -> bool:
        return self.versioning is not None and self.versioning.is_enabled()


def _tier_value(tier: ServiceTier | str) -> str:
    return tier.value if isinstance(tier, ServiceTier) else str(tier)
