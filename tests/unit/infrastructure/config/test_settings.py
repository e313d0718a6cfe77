"""Unit tests for environment-driven settings."""

import pytest

from src.infrastructure.config import get_settings, reset_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


class TestSettings:
    """Tests for Settings loading."""

    def test_defaults(self, monkeypatch):
        for var in ("CATALOG_DIRECTORY", "CATALOG_VERSIONING_ENABLED", "CATALOG_GITHUB_ORG"):
            monkeypatch.delenv(var, raising=False)

        settings = get_settings()

        assert settings.catalog.directory == "./services"
        assert settings.catalog.versioning_enabled is False
        assert settings.catalog.github_org == ""
        assert settings.kubernetes.timeout_seconds == 10.0
        assert settings.observability.service_name == "dashops-service-catalog"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CATALOG_DIRECTORY", "/var/lib/catalog")
        monkeypatch.setenv("CATALOG_VERSIONING_ENABLED", "true")
        monkeypatch.setenv("KUBERNETES_CONTEXTS_FILE", "/etc/catalog/contexts.yaml")
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")

        settings = get_settings()

        assert settings.catalog.directory == "/var/lib/catalog"
        assert settings.catalog.versioning_enabled is True
        assert settings.kubernetes.contexts_file == "/etc/catalog/contexts.yaml"
        assert settings.github.token == "ghp_test"

    def test_settings_are_cached_until_reset(self, monkeypatch):
        monkeypatch.setenv("CATALOG_GITHUB_ORG", "acme")
        first = get_settings()
        monkeypatch.setenv("CATALOG_GITHUB_ORG", "other")

        assert get_settings() is first

        reset_settings()

        assert get_settings().catalog.github_org == "other"
