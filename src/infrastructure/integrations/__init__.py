"""External integrations consulted by the service catalog.

Kubernetes supplies live deployment state for health; GitHub supplies team
membership for descriptor enrichment.
"""

from src.infrastructure.integrations.github_client import GitHubTeamClient
from src.infrastructure.integrations.kubernetes_client import (
    KubernetesApiClient,
    KubernetesContextConfig,
    load_kubernetes_contexts,
)

__all__ = [
    "GitHubTeamClient",
    "KubernetesApiClient",
    "KubernetesContextConfig",
    "load_kubernetes_contexts",
]
