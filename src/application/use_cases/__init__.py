"""Use cases - Application-specific business rules.

This package contains use cases that orchestrate domain logic
and implement application-specific workflows.
"""

from src.application.use_cases.service_catalog_controller import (
    ServiceCatalogController,
)

__all__ = [
    "ServiceCatalogController",
]
