"""Kubernetes collaborator interface.

Abstracts the cluster client so the catalog core never depends on a specific
Kubernetes SDK.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class DeploymentStatus:
    """Replica counts reported by the cluster for one deployment."""

    ready_replicas: int
    desired_replicas: int
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class KubernetesServiceInterface(ABC):
    """Interface for querying deployment state in a Kubernetes context."""

    @abstractmethod
    async def get_deployment_status(
        self, context: str, namespace: str, deployment: str
    ) -> DeploymentStatus:
        """Get replica counts of a deployment.

        Args:
            context: Cluster context identifier
            namespace: Kubernetes namespace
            deployment: Deployment name

        Returns:
            DeploymentStatus with ready and desired replicas

        Raises:
            CollaboratorUnavailableError: If the cluster cannot be queried
        """
        pass
