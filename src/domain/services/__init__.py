"""Domain services - Business logic that doesn't fit in entities."""

from src.domain.services.service_processor import ServiceProcessor
from src.domain.services.service_validator import ServiceValidator

__all__ = [
    "ServiceValidator",
    "ServiceProcessor",
]
