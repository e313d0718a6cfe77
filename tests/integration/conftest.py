"""Integration test fixtures.

Storage and versioning tests run against real files in a per-test catalog
directory; HTTP collaborators run against httpx.MockTransport handlers.
"""

import shutil
from pathlib import Path

import pytest
from fastapi import FastAPI

from src.infrastructure.api.dependencies import (
    get_github_service,
    get_kubernetes_service,
    get_service_repository,
    get_versioning_repository,
)
from src.infrastructure.api.main import create_app
from src.infrastructure.storage.filesystem_repository import FilesystemServiceRepository
from src.infrastructure.versioning.git_versioning import GitVersioningRepository


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """Empty catalog directory for one test."""
    directory = tmp_path / "services"
    directory.mkdir()
    return directory


@pytest.fixture
def repository(catalog_dir: Path) -> FilesystemServiceRepository:
    return FilesystemServiceRepository(catalog_dir)


@pytest.fixture
async def versioning(catalog_dir: Path, monkeypatch) -> GitVersioningRepository:
    """Initialized git versioning over the catalog directory.

    Global git config is isolated so the host identity and hooks don't leak in.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    monkeypatch.setenv("HOME", str(catalog_dir.parent))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.delenv("GIT_CONFIG_GLOBAL", raising=False)

    repo = GitVersioningRepository(catalog_dir)
    await repo.initialize()
    return repo


@pytest.fixture
def app(repository: FilesystemServiceRepository) -> FastAPI:
    """API app wired to the per-test catalog with optional collaborators disabled."""
    app = create_app()
    app.dependency_overrides[get_service_repository] = lambda: repository
    app.dependency_overrides[get_versioning_repository] = lambda: None
    app.dependency_overrides[get_kubernetes_service] = lambda: None
    app.dependency_overrides[get_github_service] = lambda: None
    return app
