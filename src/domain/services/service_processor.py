"""Service processor module.

This module defines the ServiceProcessor, a stateless transformer that
prepares services for persistence, runs the list pipeline and rolls
deployment state up into tier-weighted service health.
"""

import copy
import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from src.domain.entities.service import (
    DEFAULT_API_VERSION,
    DEFAULT_KIND,
    ServiceTier,
)
from src.domain.entities.service_change import ServiceFieldChange
from src.domain.entities.service_health import ServiceStatus
from src.domain.entities.service_list import ServiceList, matches_search
from src.domain.exceptions import ServiceValidationError

if TYPE_CHECKING:
    from src.domain.entities.service import Service, ServiceTeam
    from src.domain.entities.service_health import DeploymentHealth, EnvironmentHealth
    from src.domain.entities.service_list import ServiceFilter
    from src.domain.entities.user_context import UserContext

PRODUCTION_ENVIRONMENT = "production"

_CONSECUTIVE_HYPHENS = re.compile(r"-{2,}")

# Worst status wins when rolling deployments up into an environment
_ENVIRONMENT_SEVERITY = {
    ServiceStatus.HEALTHY: 0,
    ServiceStatus.UNKNOWN: 1,
    ServiceStatus.DEGRADED: 2,
    ServiceStatus.DOWN: 3,
    ServiceStatus.CRITICAL: 4,
}


class ServiceProcessor:
    """Domain service transforming Service aggregates and collections.

    Every method is pure: inputs are never mutated, preparation returns a
    deep copy. This makes the processor safe to share between concurrent
    requests.
    """

    def prepare_for_creation(
        self, service: "Service", user: "UserContext | None"
    ) -> "Service":
        """Prepare a submitted service for creation.

        Normalizes the name, team and dependencies, applies defaults and sets
        the audit fields.

        Args:
            service: Submitted service
            user: Creating user (audit fields are left empty when None)

        Returns:
            A new, prepared Service
        """
        if service is None:
            raise ServiceValidationError("service", "service is required")

        prepared = copy.deepcopy(service)
        now = datetime.now(timezone.utc)

        prepared.api_version = prepared.api_version or DEFAULT_API_VERSION
        prepared.kind = prepared.kind or DEFAULT_KIND
        prepared.metadata.name = self.normalize_service_name(prepared.metadata.name)
        prepared.metadata.version = 1
        prepared.metadata.created_at = now
        prepared.metadata.updated_at = now

        if user is not None:
            prepared.metadata.created_by = user.username
            prepared.metadata.updated_by = user.username

        self._process_team(prepared.spec.team)
        prepared.spec.business.dependencies = self.normalize_dependencies(
            prepared.spec.business.dependencies
        )

        return prepared

    def prepare_for_update(
        self,
        service: "Service",
        existing: "Service",
        user: "UserContext | None",
    ) -> "Service":
        """Prepare a submitted service as the next revision of existing.

        Immutable fields (api_version, kind, name, created_at, created_by) are
        copied from existing and the version is bumped by one.

        Args:
            service: Submitted service
            existing: Currently stored service
            user: Updating user

        Returns:
            A new, prepared Service
        """
        if service is None:
            raise ServiceValidationError("service", "service is required")
        if existing is None:
            raise ServiceValidationError("service", "existing service is required")

        prepared = copy.deepcopy(service)

        prepared.api_version = existing.api_version
        prepared.kind = existing.kind
        prepared.metadata.name = existing.metadata.name
        prepared.metadata.created_at = existing.metadata.created_at
        prepared.metadata.created_by = existing.metadata.created_by

        prepared.metadata.updated_at = datetime.now(timezone.utc)
        prepared.metadata.version = existing.metadata.version + 1
        if user is not None:
            prepared.metadata.updated_by = user.username

        self._process_team(prepared.spec.team)
        prepared.spec.business.dependencies = self.normalize_dependencies(
            prepared.spec.business.dependencies
        )

        return prepared

    def normalize_service_name(self, name: str) -> str:
        """Normalize a service name to its canonical form.

        Lowercases, turns spaces and underscores into hyphens, collapses
        consecutive hyphens and trims hyphens at both ends. Idempotent.

        Example:
            >>> ServiceProcessor().normalize_service_name("  Auth__Api ")
            'auth-api'
        """
        normalized = name.strip().lower().replace(" ", "-").replace("_", "-")
        normalized = _CONSECUTIVE_HYPHENS.sub("-", normalized)
        return normalized.strip("-")

    def normalize_dependencies(self, dependencies: list[str]) -> list[str]:
        """Normalize dependency names, drop blanks and duplicates.

        First-seen order is preserved. Idempotent.
        """
        seen: set[str] = set()
        normalized: list[str] = []

        for dependency in dependencies:
            name = self.normalize_service_name(dependency)
            if name and name not in seen:
                seen.add(name)
                normalized.append(name)

        return normalized

    def generate_service_id(self, name: str) -> str:
        """Generate the storage identifier of a service (its normalized name)."""
        return self.normalize_service_name(name)

    def process_service_list(
        self,
        services: list["Service"],
        filter: "ServiceFilter | None" = None,
    ) -> ServiceList:
        """Apply team filter, tier filter, text search and pagination.

        Args:
            services: Services to process, in display order
            filter: Filtering criteria; None returns everything

        Returns:
            ServiceList whose total is the number of services matching the
            filter before pagination, so clients can page correctly
        """
        if filter is None:
            return ServiceList(services=list(services), total=len(services))

        filtered = list(services)

        if filter.team:
            team = filter.team.lower()
            filtered = [s for s in filtered if s.spec.team.github_team.lower() == team]

        if filter.tier:
            filtered = [s for s in filtered if s.metadata.tier == filter.tier]

        if filter.search:
            filtered = [s for s in filtered if matches_search(s, filter.search)]

        total = len(filtered)
        offset = max(filter.offset, 0)

        if filter.limit is None:
            page = filtered[offset:]
        else:
            page = filtered[offset : offset + max(filter.limit, 0)]

        return ServiceList(services=page, total=total, filters=filter)

    def determine_deployment_status(
        self, ready_replicas: int, desired_replicas: int
    ) -> ServiceStatus:
        """Map replica counts to a deployment status.

        - down: nothing ready while replicas are desired
        - degraded: some but not all replicas ready
        - healthy: all desired replicas ready
        - unknown: anything else (e.g., scaled to zero)
        """
        if desired_replicas > 0 and ready_replicas <= 0:
            return ServiceStatus.DOWN
        if 0 < ready_replicas < desired_replicas:
            return ServiceStatus.DEGRADED
        if desired_replicas > 0 and ready_replicas >= desired_replicas:
            return ServiceStatus.HEALTHY
        return ServiceStatus.UNKNOWN

    def aggregate_environment_status(
        self, deployments: list["DeploymentHealth"]
    ) -> ServiceStatus:
        """Roll deployment statuses up into an environment status (worst wins)."""
        if not deployments:
            return ServiceStatus.UNKNOWN
        return max(
            (deployment.status for deployment in deployments),
            key=lambda status: _ENVIRONMENT_SEVERITY[status],
        )

    def calculate_service_health(
        self,
        environments: list["EnvironmentHealth"],
        tier: "ServiceTier | str",
    ) -> ServiceStatus:
        """Calculate the tier-weighted overall status of a service.

        The production environment (case-insensitive) drives the result; the
        first environment is used when there is none.

        | production \\ tier | TIER-1   | TIER-2   | TIER-3   |
        |-------------------|----------|----------|----------|
        | down              | critical | degraded | degraded |
        | degraded          | critical | degraded | healthy  |
        | healthy           | healthy  | healthy  | healthy  |
        | unknown           | unknown  | unknown  | healthy  |

        Args:
            environments: Per-environment health
            tier: Service tier

        Returns:
            Overall ServiceStatus, unknown when there are no environments
        """
        if not environments:
            return ServiceStatus.UNKNOWN

        reference = next(
            (env for env in environments if env.name.lower() == PRODUCTION_ENVIRONMENT),
            environments[0],
        )
        status = reference.status

        if tier == ServiceTier.CRITICAL:
            if status in (ServiceStatus.DOWN, ServiceStatus.DEGRADED):
                return ServiceStatus.CRITICAL
            return status

        if tier == ServiceTier.IMPORTANT:
            if status == ServiceStatus.DOWN:
                return ServiceStatus.DEGRADED
            return status

        if tier == ServiceTier.STANDARD:
            if status == ServiceStatus.DOWN:
                return ServiceStatus.DEGRADED
            return ServiceStatus.HEALTHY

        return status

    def compare_services(
        self, old: "Service", new: "Service"
    ) -> list[ServiceFieldChange]:
        """List the observed fields that differ between two revisions.

        Args:
            old: Previous revision
            new: New revision

        Returns:
            Field changes, in a stable order
        """
        old_tech = old.spec.technology
        new_tech = new.spec.technology
        observed = [
            ("spec.description", old.spec.description, new.spec.description),
            ("metadata.tier", _tier_value(old.metadata.tier), _tier_value(new.metadata.tier)),
            ("spec.team.github_team", old.spec.team.github_team, new.spec.team.github_team),
            ("spec.business.sla_target", old.spec.business.sla_target, new.spec.business.sla_target),
            ("spec.business.impact", old.spec.business.impact, new.spec.business.impact),
            (
                "spec.business.dependencies",
                list(old.spec.business.dependencies),
                list(new.spec.business.dependencies),
            ),
            (
                "spec.technology.language",
                old_tech.language if old_tech else "",
                new_tech.language if new_tech else "",
            ),
            (
                "spec.technology.framework",
                old_tech.framework if old_tech else "",
                new_tech.framework if new_tech else "",
            ),
        ]

        return [
            ServiceFieldChange(field=name, old_value=old_value, new_value=new_value)
            for name, old_value, new_value in observed
            if old_value != new_value
        ]

    def _process_team(self, team: "ServiceTeam | None") -> None:
        if team is not None:
            team.github_team = team.github_team.strip().lower()


def _tier_value(tier: "ServiceTier | str") -> str:
    return tier.value if isinstance(tier, ServiceTier) else str(tier)
