"""Application configuration using Pydantic Settings.

Centralized configuration management following Clean Architecture principles.
All environment variables should be accessed through this module.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogSettings(BaseSettings):
    """Service catalog storage configuration."""

    model_config = SettingsConfigDict(env_prefix="CATALOG_", case_sensitive=False)

    directory: str = Field(
        default="./services",
        description="Directory holding one <name>.yaml file per service",
    )
    versioning_enabled: bool = Field(
        default=False,
        description="Record every mutation as a git commit in the catalog directory",
    )
    github_org: str = Field(
        default="",
        description="GitHub organization used to resolve team members (empty disables)",
    )


class KubernetesSettings(BaseSettings):
    """Kubernetes cluster access configuration."""

    model_config = SettingsConfigDict(env_prefix="KUBERNETES_", case_sensitive=False)

    contexts_file: str = Field(
        default="",
        description="YAML file mapping context names to API server url/token (empty disables)",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Request timeout in seconds",
    )


class GitHubSettings(BaseSettings):
    """GitHub REST API configuration."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", case_sensitive=False)

    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    token: str = Field(
        default="",
        description="Token used to read team membership",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Request timeout in seconds",
    )


class APISettings(BaseSettings):
    """API server configuration settings."""

    model_config = SettingsConfigDict(env_prefix="API_", case_sensitive=False)

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server",
    )
    port: int = Field(
        default=8080,
        description="Port to bind the API server",
    )
    workers: int = Field(
        default=1,
        description="Number of Uvicorn worker processes",
    )


class ObservabilitySettings(BaseSettings):
    """Observability configuration settings (OpenTelemetry, logging, metrics)."""

    model_config = SettingsConfigDict(env_prefix="OTEL_", case_sensitive=False)

    # OpenTelemetry Tracing
    tracing_enabled: bool = Field(
        default=False,
        description="Export traces through OTLP",
    )
    exporter_otlp_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP exporter endpoint (gRPC)",
    )
    service_name: str = Field(
        default="dashops-service-catalog",
        description="Service name for traces and metrics",
    )
    trace_sample_rate: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Trace sampling rate (0.0 to 1.0)",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json_format: bool = Field(
        default=True,
        description="Enable JSON structured logging",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration modules and provides a single settings object.
    Load from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Application environment (development, staging, production)",
    )

    # Sub-settings
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    api: APISettings = Field(default_factory=APISettings)
    observability: ObservabilitySettings = Field(
        default_factory=ObservabilitySettings
    )


# Global settings instance (singleton)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get global settings instance (singleton pattern).

    Returns:
        Settings instance loaded from environment
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
