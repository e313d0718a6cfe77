"""Service repository interface module.

This module defines the abstract interface for Service aggregate persistence.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.entities.service import Service, ServiceTier
    from src.domain.entities.service_list import ServiceFilter


class ServiceRepositoryInterface(ABC):
    """Repository interface for Service aggregate operations.

    Implementations own the stored services; callers receive copies. Every
    method is a suspension point and may raise asyncio.CancelledError when the
    calling task is cancelled; write methods must not persist partial state
    in that case.
    """

    @abstractmethod
    async def create(self, service: "Service") -> "Service":
        """Persist a new service.

        Args:
            service: Prepared service to store

        Returns:
            The stored service

        Raises:
            ServiceAlreadyExistsError: If a service with the same name exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_by_name(self, name: str) -> "Service":
        """Get a service by name.

        Args:
            name: Service name

        Returns:
            The stored service

        Raises:
            ServiceNotFoundError: If no service has this name
            StorageError: If the stored document cannot be read or decoded
        """
        pass

    @abstractmethod
    async def update(self, service: "Service") -> "Service":
        """Overwrite an existing service.

        Args:
            service: Prepared service with a bumped version

        Returns:
            The stored service

        Raises:
            ServiceNotFoundError: If the service does not exist
            VersionConflictError: If the stored version is not service.version - 1
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove a service.

        Raises:
            ServiceNotFoundError: If the service does not exist
            StorageError: If the removal fails
        """
        pass

    @abstractmethod
    async def list(self, filter: "ServiceFilter | None" = None) -> list["Service"]:
        """List all stored services.

        Unreadable or malformed entries are skipped rather than failing the
        whole listing. Filtering is applied by ServiceProcessor, the filter is
        accepted for backends that can push it down.
        """
        pass

    @abstractmethod
    async def exists(self, name: str) -> bool:
        """Check whether a service exists. Never raises ServiceNotFoundError."""
        pass

    @abstractmethod
    async def list_by_team(self, team: str) -> "list[Service]":
        """List services owned by a team (case-insensitive)."""
        pass

    @abstractmethod
    async def list_by_tier(self, tier: "ServiceTier | str") -> "list[Service]":
        """List services of a tier."""
        pass

    @abstractmethod
    async def search(self, query: str, limit: int = 0) -> "list[Service]":
        """Search services by free text.

        Args:
            query: Case-insensitive substring over name, description, team,
                language and framework
            limit: Maximum number of results when greater than zero

        Returns:
            Matching services
        """
        pass
