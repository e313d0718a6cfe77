"""
Dependency injection for FastAPI routes.

Provides factory functions for the catalog controller and its collaborators.
Collaborators are process-wide singletons: the repository's write lock and
the HTTP connection pools must be shared by every request.
"""

from functools import lru_cache

from fastapi import Depends

from src.application.use_cases.service_catalog_controller import (
    ServiceCatalogController,
)
from src.domain.services.service_processor import ServiceProcessor
from src.domain.services.service_validator import ServiceValidator
from src.infrastructure.config.settings import get_settings
from src.infrastructure.integrations.github_client import GitHubTeamClient
from src.infrastructure.integrations.kubernetes_client import (
    KubernetesApiClient,
    load_kubernetes_contexts,
)
from src.infrastructure.observability.logging import get_logger
from src.infrastructure.storage.filesystem_repository import (
    FilesystemServiceRepository,
)
from src.infrastructure.versioning.git_versioning import GitVersioningRepository

logger = get_logger(__name__)


# Collaborator factories


@lru_cache
def get_service_repository() -> FilesystemServiceRepository:
    """Get the FilesystemServiceRepository for the configured catalog directory."""
    return FilesystemServiceRepository(get_settings().catalog.directory)


@lru_cache
def get_versioning_repository() -> GitVersioningRepository | None:
    """Get the git versioning backend, or None when versioning is disabled."""
    catalog = get_settings().catalog
    if not catalog.versioning_enabled:
        return None
    return GitVersioningRepository(catalog.directory)


@lru_cache
def get_kubernetes_service() -> KubernetesApiClient | None:
    """Get the Kubernetes client, or None when no contexts file is configured.

    An unreadable contexts file disables health lookups instead of failing
    startup; every deployment then reports unknown.
    """
    config = get_settings().kubernetes
    if not config.contexts_file:
        return None

    try:
        contexts = load_kubernetes_contexts(config.contexts_file)
    except ValueError as e:
        logger.error(
            "kubernetes_contexts_unavailable",
            contexts_file=config.contexts_file,
            error=str(e),
        )
        return None

    return KubernetesApiClient(contexts, timeout=config.timeout_seconds)


@lru_cache
def get_github_service() -> GitHubTeamClient | None:
    """Get the GitHub team client, or None when no organization is configured."""
    settings = get_settings()
    if not settings.catalog.github_org:
        return None
    return GitHubTeamClient(
        api_url=settings.github.api_url,
        token=settings.github.token,
        timeout=settings.github.timeout_seconds,
    )


# Domain service factories


def get_service_validator() -> ServiceValidator:
    """Get ServiceValidator instance."""
    return ServiceValidator()


def get_service_processor() -> ServiceProcessor:
    """Get ServiceProcessor instance."""
    return ServiceProcessor()


# Use case factories


def get_service_catalog_controller(
    repository: FilesystemServiceRepository = Depends(get_service_repository),
    validator: ServiceValidator = Depends(get_service_validator),
    processor: ServiceProcessor = Depends(get_service_processor),
    versioning: GitVersioningRepository | None = Depends(get_versioning_repository),
    kubernetes: KubernetesApiClient | None = Depends(get_kubernetes_service),
    github: GitHubTeamClient | None = Depends(get_github_service),
) -> ServiceCatalogController:
    """Get ServiceCatalogController instance."""
    return ServiceCatalogController(
        repository=repository,
        validator=validator,
        processor=processor,
        versioning=versioning,
        kubernetes=kubernetes,
        github=github,
        github_org=get_settings().catalog.github_org,
    )


async def close_collaborators() -> None:
    """Close HTTP clients and drop cached collaborators (application shutdown)."""
    kubernetes = get_kubernetes_service()
    if kubernetes is not None:
        await kubernetes.close()

    github = get_github_service()
    if github is not None:
        await github.close()

    for factory in (
        get_service_repository,
        get_versioning_repository,
        get_kubernetes_service,
        get_github_service,
    ):
        factory.cache_clear()
