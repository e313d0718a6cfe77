"""Kubernetes API integration.

This module provides a client that reads Deployment replica counts from the
Kubernetes API servers behind each configured context. Contexts are declared
in a YAML file:

    contexts:
      - name: prod-cluster
        api_url: https://k8s.prod.example.com
        token: <service account token>
        verify_ssl: true
"""

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import BaseModel, Field, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.exceptions import CollaboratorUnavailableError
from src.domain.repositories.kubernetes_service import (
    DeploymentStatus,
    KubernetesServiceInterface,
)
from src.infrastructure.observability.logging import get_logger
from src.infrastructure.observability.metrics import record_collaborator_request

logger = get_logger(__name__)


class KubernetesContextConfig(BaseModel):
    """Access configuration of one cluster context."""

    name: str
    api_url: str
    token: str = ""
    verify_ssl: bool = True


class KubernetesContextsFile(BaseModel):
    """Top-level structure of the contexts file."""

    contexts: list[KubernetesContextConfig] = Field(default_factory=list)


def load_kubernetes_contexts(path: str | Path) -> dict[str, KubernetesContextConfig]:
    """Load the context map from a YAML file.

    Args:
        path: Contexts file path

    Returns:
        Mapping of context name to its configuration

    Raises:
        ValueError: If the file cannot be read or is malformed
    """
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        parsed = KubernetesContextsFile.model_validate(raw)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ValueError(f"invalid kubernetes contexts file '{path}': {e}") from e

    return {context.name: context for context in parsed.contexts}


class KubernetesApiClient(KubernetesServiceInterface):
    """KubernetesServiceInterface implementation over the apps/v1 REST API.

    One httpx.AsyncClient is kept per context since TLS verification and
    credentials differ between clusters.

    Attributes:
        contexts: Configured cluster contexts by name
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        contexts: dict[str, KubernetesContextConfig],
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            contexts: Cluster contexts by name
            timeout: Request timeout in seconds
            transport: Optional transport override (used by tests)
        """
        self.contexts = contexts
        self.timeout = timeout
        self._transport = transport
        self._clients: dict[str, httpx.AsyncClient] = {}

    async def close(self) -> None:
        """Close all HTTP client connections."""
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()

    async def __aenter__(self) -> "KubernetesApiClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_deployment_status(
        self, context: str, namespace: str, deployment: str
    ) -> DeploymentStatus:
        """Read ready and desired replicas of a deployment.

        Raises:
            CollaboratorUnavailableError: If the context is unknown, the API
                server is unreachable after retries, answers with an error
                or returns an unreadable payload
        """
        config = self.contexts.get(context)
        if config is None:
            raise CollaboratorUnavailableError(f"unknown kubernetes context '{context}'")

        url = (
            f"{config.api_url.rstrip('/')}/apis/apps/v1/namespaces/{namespace}"
            f"/deployments/{deployment}"
        )

        start_time = time.perf_counter()
        try:
            data = await self._get_json(self._client_for(config), url)
            status = self._parse_deployment(data)
        except httpx.HTTPStatusError as e:
            record_collaborator_request("kubernetes", "failure", time.perf_counter() - start_time)
            logger.warning(
                "kubernetes_http_error",
                context=context,
                namespace=namespace,
                deployment=deployment,
                status_code=e.response.status_code,
            )
            raise CollaboratorUnavailableError(
                f"kubernetes API returned {e.response.status_code} for "
                f"{context}/{namespace}/{deployment}"
            ) from e
        except httpx.RequestError as e:
            record_collaborator_request("kubernetes", "failure", time.perf_counter() - start_time)
            logger.warning("kubernetes_connection_error", context=context, error=str(e))
            raise CollaboratorUnavailableError(
                f"failed to connect to kubernetes context '{context}': {e}"
            ) from e
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            # Non-JSON bodies (e.g. an auth proxy login page) or unexpected shapes
            record_collaborator_request("kubernetes", "failure", time.perf_counter() - start_time)
            logger.warning(
                "kubernetes_invalid_response",
                context=context,
                namespace=namespace,
                deployment=deployment,
                error=str(e),
            )
            raise CollaboratorUnavailableError(
                f"invalid deployment payload for {context}/{namespace}/{deployment}"
            ) from e

        record_collaborator_request("kubernetes", "success", time.perf_counter() - start_time)
        return status

    def _client_for(self, config: KubernetesContextConfig) -> httpx.AsyncClient:
        client = self._clients.get(config.name)
        if client is None:
            headers = {"Accept": "application/json"}
            if config.token:
                headers["Authorization"] = f"Bearer {config.token}"
            client = httpx.AsyncClient(
                timeout=self.timeout,
                verify=config.verify_ssl,
                headers=headers,
                transport=self._transport,
            )
            self._clients[config.name] = client
        return client

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    async def _get_json(self, client: httpx.AsyncClient, url: str) -> dict[str, Any]:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse_deployment(data: dict[str, Any]) -> DeploymentStatus:
        spec = data.get("spec") or {}
        status = data.get("status") or {}

        last_updated = datetime.now(timezone.utc)
        update_times = [
            condition.get("lastUpdateTime")
            for condition in status.get("conditions") or []
            if condition.get("lastUpdateTime")
        ]
        if update_times:
            last_updated = datetime.fromisoformat(max(update_times).replace("Z", "+00:00"))

        return DeploymentStatus(
            ready_replicas=int(status.get("readyReplicas") or 0),
            desired_replicas=int(spec.get("replicas", 1)),
            last_updated=last_updated,
        )
