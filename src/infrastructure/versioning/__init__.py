"""Catalog change history adapters."""

from src.infrastructure.versioning.git_versioning import GitVersioningRepository

__all__ = ["GitVersioningRepository"]
