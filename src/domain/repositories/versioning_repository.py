"""Versioning repository interface module.

Records catalog mutations and serves the change history.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.entities.service import Service
    from src.domain.entities.service_change import ChangeAction, ServiceChange
    from src.domain.entities.user_context import UserContext


class VersioningRepositoryInterface(ABC):
    """Repository interface for the catalog change history."""

    @abstractmethod
    async def record_change(
        self,
        service: "Service",
        user: "UserContext | None",
        action: "ChangeAction",
    ) -> None:
        """Record a created/updated/deleted event for a service.

        Raises:
            CollaboratorUnavailableError: If the history backend fails
        """
        pass

    @abstractmethod
    async def get_service_history(self, name: str) -> list["ServiceChange"]:
        """Get the change history of one service, newest first."""
        pass

    @abstractmethod
    async def get_all_history(self) -> list["ServiceChange"]:
        """Get the change history of the whole catalog, newest first."""
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        pass

    @abstractmethod
    async def get_status(self) -> str:
        """Get a human-readable status of the history backend."""
        pass
