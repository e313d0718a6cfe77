"""Shared test fixtures for service catalog tests."""

import pytest

from src.domain.entities.service import (
    KubernetesDeployment,
    KubernetesEnvironment,
    KubernetesEnvironmentResources,
    Service,
    ServiceBusiness,
    ServiceKubernetes,
    ServiceMetadata,
    ServiceSpec,
    ServiceTeam,
    ServiceTier,
)
from src.domain.entities.user_context import UserContext


def build_service(
    name: str = "auth-api",
    tier: ServiceTier | str = ServiceTier.CRITICAL,
    team: str = "auth-squad",
    description: str = "Authentication API",
    dependencies: list[str] | None = None,
    environments: list[KubernetesEnvironment] | None = None,
    version: int = 0,
) -> Service:
    """Build a minimal valid service descriptor."""
    return Service(
        metadata=ServiceMetadata(name=name, tier=tier, version=version),
        spec=ServiceSpec(
            description=description,
            team=ServiceTeam(github_team=team),
            business=ServiceBusiness(dependencies=list(dependencies or [])),
            kubernetes=(
                ServiceKubernetes(environments=environments)
                if environments is not None
                else None
            ),
        ),
    )


def build_environment(
    name: str,
    deployments: list[tuple[str, int]],
    context: str = "prod-cluster",
    namespace: str = "auth",
) -> KubernetesEnvironment:
    """Build an environment from (deployment name, replicas) pairs."""
    return KubernetesEnvironment(
        name=name,
        context=context,
        namespace=namespace,
        resources=KubernetesEnvironmentResources(
            deployments=[
                KubernetesDeployment(name=dep_name, replicas=replicas)
                for dep_name, replicas in deployments
            ]
        ),
    )


@pytest.fixture
def make_service():
    """Factory fixture building service descriptors."""
    return build_service


@pytest.fixture
def make_environment():
    """Factory fixture building Kubernetes environments."""
    return build_environment


@pytest.fixture
def auth_user() -> UserContext:
    """User in the auth-squad team."""
    return UserContext(
        username="u",
        name="Test User",
        email="u@example.com",
        teams=["auth-squad"],
    )


@pytest.fixture
def other_user() -> UserContext:
    """User in an unrelated team."""
    return UserContext(
        username="bob",
        name="Bob",
        email="bob@example.com",
        teams=["other-squad"],
    )
