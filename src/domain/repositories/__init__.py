"""Repository interfaces - Abstract data access contracts."""

from src.domain.repositories.github_service import GitHubServiceInterface, TeamInfo
from src.domain.repositories.kubernetes_service import (
    DeploymentStatus,
    KubernetesServiceInterface,
)
from src.domain.repositories.service_repository import ServiceRepositoryInterface
from src.domain.repositories.versioning_repository import (
    VersioningRepositoryInterface,
)

__all__ = [
    "ServiceRepositoryInterface",
    "VersioningRepositoryInterface",
    "KubernetesServiceInterface",
    "DeploymentStatus",
    "GitHubServiceInterface",
    "TeamInfo",
]
