"""Domain entities - Core business objects."""

from src.domain.entities.service import (
    Service,
    ServiceContext,
    ServiceMetadata,
    ServiceSpec,
    ServiceTeam,
    ServiceTier,
)
from src.domain.entities.service_change import (
    ChangeAction,
    ServiceChange,
    ServiceFieldChange,
    ServiceHistory,
)
from src.domain.entities.service_health import (
    DeploymentHealth,
    EnvironmentHealth,
    ServiceHealth,
    ServiceStatus,
)
from src.domain.entities.service_list import ServiceFilter, ServiceList
from src.domain.entities.user_context import UserContext

__all__ = [
    # Service aggregate
    "Service",
    "ServiceMetadata",
    "ServiceSpec",
    "ServiceTeam",
    "ServiceTier",
    "ServiceContext",
    # Listing
    "ServiceFilter",
    "ServiceList",
    # Health
    "ServiceStatus",
    "DeploymentHealth",
    "EnvironmentHealth",
    "ServiceHealth",
    # History
    "ChangeAction",
    "ServiceChange",
    "ServiceFieldChange",
    "ServiceHistory",
    # Caller
    "UserContext",
]
