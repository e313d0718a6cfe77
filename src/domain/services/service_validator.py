"""Service validator module.

This module defines the ServiceValidator, which rejects malformed service
descriptors before they reach the repository.
"""

import re
from typing import TYPE_CHECKING

from src.domain.entities.service import ServiceTier
from src.domain.exceptions import PermissionDeniedError, ServiceValidationError

if TYPE_CHECKING:
    from src.domain.entities.service import (
        KubernetesDeployment,
        KubernetesEnvironment,
        KubernetesResourceSpec,
        Service,
        ServiceKubernetes,
        ServiceRunbook,
        ServiceTeam,
    )
    from src.domain.entities.user_context import UserContext

SERVICE_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]{1,98}[A-Za-z0-9]")
TEAM_NAME_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
CPU_PATTERN = re.compile(r"(\d+(\.\d+)?|\d+m)")
MEMORY_PATTERN = re.compile(r"\d+(Mi|Gi|Ki|Ti|M|G|K|T)")

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MIN_REPLICAS = 1
MAX_REPLICAS = 100

# Characters that are never valid in a file name on any supported platform
FORBIDDEN_NAME_CHARACTERS = set('/\\:*?"<>|')

MUTATING_OPERATIONS = {"create", "update", "delete"}


class ServiceValidator:
    """Domain service validating Service aggregates.

    Stateless and side-effect free: input is never mutated. The first
    violation found is raised as ServiceValidationError naming the field.
    Presence checks run before format checks.
    """

    def validate_for_creation(self, service: "Service") -> None:
        """Validate a service descriptor submitted for creation.

        Args:
            service: Service to validate

        Raises:
            ServiceValidationError: If any invariant is violated
        """
        if service is None:
            raise ServiceValidationError("service", "service is required")

        self._validate_basic_fields(service)
        self._validate_service_name(service.metadata.name)
        self._validate_tier(service.metadata.tier)
        self._validate_team(service.spec.team)

        if service.spec.kubernetes is not None:
            self._validate_kubernetes(service.spec.kubernetes)

        self._validate_runbooks(service.spec.runbooks)

    def validate_for_update(self, service: "Service", existing: "Service") -> None:
        """Validate a service descriptor submitted as an update of existing.

        Args:
            service: Updated service
            existing: Currently stored service

        Raises:
            ServiceValidationError: If the name changed or any invariant is violated
        """
        if service is None:
            raise ServiceValidationError("service", "service is required")
        if existing is None:
            raise ServiceValidationError("service", "existing service is required")

        if service.metadata.name != existing.metadata.name:
            raise ServiceValidationError(
                "metadata.name",
                f"service name cannot be changed "
                f"(from '{existing.metadata.name}' to '{service.metadata.name}')",
            )

        self.validate_for_creation(service)

    def validate_user_permissions(
        self,
        service: "Service",
        user: "UserContext | None",
        operation: str,
    ) -> None:
        """Check that a user may perform an operation on a service.

        Mutating operations (create, update, delete) require the user to be a
        member of the owning team. A service without an owning team may be
        modified by any authenticated user.

        Args:
            service: Target service (the stored one for update and delete)
            user: Authenticated caller
            operation: Operation name

        Raises:
            PermissionDeniedError: If the user may not perform the operation
        """
        if user is None:
            raise PermissionDeniedError("user context is required")

        if operation not in MUTATING_OPERATIONS:
            return

        if not service.spec.team.github_team.strip():
            return

        if not service.can_be_modified_by(user.teams):
            raise PermissionDeniedError(
                f"user '{user.username}' does not have permission to {operation} "
                f"service '{service.metadata.name}' "
                f"(owned by team '{service.spec.team.github_team}')"
            )

    def _validate_basic_fields(self, service: "Service") -> None:
        if not service.metadata.name:
            raise ServiceValidationError("metadata.name", "service name is required")

        if not service.spec.description:
            raise ServiceValidationError(
                "spec.description", "service description is required"
            )

        if len(service.spec.description) > MAX_DESCRIPTION_LENGTH:
            raise ServiceValidationError(
                "spec.description",
                f"service description too long (max {MAX_DESCRIPTION_LENGTH} characters)",
            )

    def _validate_service_name(self, name: str) -> None:
        if len(name) < MIN_NAME_LENGTH:
            raise ServiceValidationError(
                "metadata.name",
                f"service name too short (min {MIN_NAME_LENGTH} characters)",
            )

        if len(name) > MAX_NAME_LENGTH:
            raise ServiceValidationError(
                "metadata.name",
                f"service name too long (max {MAX_NAME_LENGTH} characters)",
            )

        if FORBIDDEN_NAME_CHARACTERS.intersection(name):
            raise ServiceValidationError(
                "metadata.name", "service name contains invalid characters"
            )

        if not SERVICE_NAME_PATTERN.fullmatch(name):
            raise ServiceValidationError(
                "metadata.name",
                "service name must contain only alphanumeric characters, hyphens, "
                "and underscores, and start and end with an alphanumeric character",
            )

    def _validate_tier(self, tier: "ServiceTier | str") -> None:
        if not isinstance(tier, ServiceTier):
            raise ServiceValidationError(
                "metadata.tier",
                f"invalid tier '{tier}', must be one of {', '.join(ServiceTier.values())}",
            )

    def _validate_team(self, team: "ServiceTeam") -> None:
        if team is None or not team.github_team:
            raise ServiceValidationError("spec.team.github_team", "github team is required")

        if not TEAM_NAME_PATTERN.fullmatch(team.github_team):
            raise ServiceValidationError(
                "spec.team.github_team",
                f"invalid GitHub team name format '{team.github_team}'",
            )

    def _validate_kubernetes(self, kubernetes: "ServiceKubernetes") -> None:
        if not kubernetes.environments:
            raise ServiceValidationError(
                "spec.kubernetes.environments", "at least one environment is required"
            )

        seen: set[str] = set()
        for index, environment in enumerate(kubernetes.environments):
            path = f"spec.kubernetes.environments[{index}]"
            self._validate_environment(environment, path)

            if environment.name in seen:
                raise ServiceValidationError(
                    f"{path}.name", f"duplicate environment name '{environment.name}'"
                )
            seen.add(environment.name)

    def _validate_environment(self, environment: "KubernetesEnvironment", path: str) -> None:
        if not environment.name:
            raise ServiceValidationError(f"{path}.name", "environment name is required")
        if not environment.context:
            raise ServiceValidationError(
                f"{path}.context", "environment context is required"
            )
        if not environment.namespace:
            raise ServiceValidationError(
                f"{path}.namespace", "environment namespace is required"
            )

        deployments = environment.resources.deployments
        if not deployments:
            raise ServiceValidationError(
                f"{path}.resources.deployments", "at least one deployment is required"
            )

        seen: set[str] = set()
        for index, deployment in enumerate(deployments):
            deployment_path = f"{path}.resources.deployments[{index}]"
            self._validate_deployment(deployment, deployment_path)

            if deployment.name in seen:
                raise ServiceValidationError(
                    f"{deployment_path}.name",
                    f"duplicate deployment name '{deployment.name}' "
                    f"in environment '{environment.name}'",
                )
            seen.add(deployment.name)

    def _validate_deployment(self, deployment: "KubernetesDeployment", path: str) -> None:
        if not deployment.name:
            raise ServiceValidationError(f"{path}.name", "deployment name is required")

        if deployment.replicas < MIN_REPLICAS:
            raise ServiceValidationError(
                f"{path}.replicas", "deployment replicas must be greater than 0"
            )
        if deployment.replicas > MAX_REPLICAS:
            raise ServiceValidationError(
                f"{path}.replicas", f"deployment replicas too high (max {MAX_REPLICAS})"
            )

        self._validate_resource_spec(
            deployment.resources.requests, f"{path}.resources.requests"
        )
        self._validate_resource_spec(deployment.resources.limits, f"{path}.resources.limits")

    def _validate_resource_spec(self, spec: "KubernetesResourceSpec", path: str) -> None:
        if spec.cpu and not CPU_PATTERN.fullmatch(spec.cpu):
            raise ServiceValidationError(
                f"{path}.cpu",
                f"invalid CPU format '{spec.cpu}' (examples: 100m, 0.5, 1)",
            )
        if spec.memory and not MEMORY_PATTERN.fullmatch(spec.memory):
            raise ServiceValidationError(
                f"{path}.memory",
                f"invalid memory format '{spec.memory}' (examples: 128Mi, 1Gi, 512M)",
            )

    def _validate_runbooks(self, runbooks: list["ServiceRunbook"]) -> None:
        seen: set[str] = set()
        for index, runbook in enumerate(runbooks):
            path = f"spec.runbooks[{index}]"
            if not runbook.name:
                raise ServiceValidationError(f"{path}.name", "runbook name is required")
            if not runbook.url:
                raise ServiceValidationError(f"{path}.url", "runbook url is required")

            if runbook.name in seen:
                raise ServiceValidationError(
                    f"{path}.name", f"duplicate runbook name '{runbook.name}'"
                )
            seen.add(runbook.name)

            if not runbook.url.startswith(("http://", "https://")):
                raise ServiceValidationError(
                    f"{path}.url", "runbook url must be a valid HTTP/HTTPS URL"
                )
