"""YAML codec for service descriptor files.

The on-disk form follows the DashOps descriptor layout:

    apiVersion: dash-ops.io/v1
    kind: Service
    metadata:
      name: auth-api
      tier: TIER-1
      ...
    spec:
      description: ...
      team:
        github_team: auth-squad

Empty optional values are omitted so files stay short and diffs readable.
Optional sections that are present but empty are written as {} so that
decoding restores them.
"""

from datetime import datetime, timezone
from typing import Any

import yaml

from src.domain.entities.service import (
    DEFAULT_API_VERSION,
    DEFAULT_KIND,
    KubernetesDeployment,
    KubernetesEnvironment,
    KubernetesEnvironmentResources,
    KubernetesResourceRequests,
    KubernetesResourceSpec,
    Service,
    ServiceBusiness,
    ServiceKubernetes,
    ServiceMetadata,
    ServiceObservability,
    ServiceRunbook,
    ServiceSpec,
    ServiceTeam,
    ServiceTechnology,
    ServiceTier,
)
from src.domain.exceptions import ServiceDecodeError


def encode_service(service: Service) -> str:
    """Serialize a service to its YAML document."""
    return yaml.safe_dump(
        service_to_dict(service),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def decode_service(content: str | bytes, source: str = "<string>") -> Service:
    """Parse a YAML document into a Service.

    Args:
        content: YAML text
        source: Origin used in error messages (usually the file path)

    Returns:
        The decoded Service

    Raises:
        ServiceDecodeError: If the document is not valid YAML or not a service
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ServiceDecodeError(f"{source}: invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ServiceDecodeError(f"{source}: document is not a mapping")

    try:
        return service_from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ServiceDecodeError(f"{source}: malformed service document: {e!r}") from e


def service_to_dict(service: Service) -> dict[str, Any]:
    """Convert a Service to the plain dict written to disk."""
    metadata = service.metadata
    spec = service.spec

    metadata_dict = _compact(
        {
            "name": metadata.name,
            "tier": _tier_value(metadata.tier),
            "created_at": _format_datetime(metadata.created_at),
            "created_by": metadata.created_by,
            "updated_at": _format_datetime(metadata.updated_at),
            "updated_by": metadata.updated_by,
        }
    )
    metadata_dict["version"] = metadata.version

    spec_dict: dict[str, Any] = {
        "description": spec.description,
        "team": _compact(
            {
                "github_team": spec.team.github_team,
                "members": list(spec.team.members),
                "github_url": spec.team.github_url,
            },
            keep=("github_team",),
        ),
    }

    business = _compact(
        {
            "sla_target": spec.business.sla_target,
            "dependencies": list(spec.business.dependencies),
            "impact": spec.business.impact,
        }
    )
    if business:
        spec_dict["business"] = business

    if spec.technology is not None:
        spec_dict["technology"] = _compact(
            {"language": spec.technology.language, "framework": spec.technology.framework}
        )

    if spec.kubernetes is not None:
        spec_dict["kubernetes"] = {
            "environments": [
                _environment_to_dict(env) for env in spec.kubernetes.environments
            ]
        }

    if spec.observability is not None:
        spec_dict["observability"] = _compact(
            {
                "metrics": spec.observability.metrics,
                "logs": spec.observability.logs,
                "traces": spec.observability.traces,
            }
        )

    if spec.runbooks:
        spec_dict["runbooks"] = [
            {"name": runbook.name, "url": runbook.url} for runbook in spec.runbooks
        ]

    return {
        "apiVersion": service.api_version,
        "kind": service.kind,
        "metadata": metadata_dict,
        "spec": spec_dict,
    }


def service_from_dict(data: dict[str, Any]) -> Service:
    """Build a Service from its on-disk dict form.

    Raises:
        KeyError: If a required key is missing
        TypeError: If a section has the wrong shape
        ValueError: If a value cannot be converted
    """
    metadata = _mapping(data["metadata"], "metadata")
    spec = _mapping(data["spec"], "spec")
    team = _mapping(spec["team"], "spec.team")
    business = _mapping(spec.get("business") or {}, "spec.business")

    technology = None
    if spec.get("technology") is not None:
        tech = _mapping(spec["technology"], "spec.technology")
        technology = ServiceTechnology(
            language=_str(tech.get("language")),
            framework=_str(tech.get("framework")),
        )

    kubernetes = None
    if spec.get("kubernetes") is not None:
        k8s = _mapping(spec["kubernetes"], "spec.kubernetes")
        kubernetes = ServiceKubernetes(
            environments=[
                _environment_from_dict(_mapping(env, "spec.kubernetes.environments[]"))
                for env in k8s.get("environments") or []
            ]
        )

    observability = None
    if spec.get("observability") is not None:
        obs = _mapping(spec["observability"], "spec.observability")
        observability = ServiceObservability(
            metrics=_str(obs.get("metrics")),
            logs=_str(obs.get("logs")),
            traces=_str(obs.get("traces")),
        )

    return Service(
        api_version=_str(data.get("apiVersion")) or DEFAULT_API_VERSION,
        kind=_str(data.get("kind")) or DEFAULT_KIND,
        metadata=ServiceMetadata(
            name=_str(metadata["name"]),
            tier=_str(metadata.get("tier")) or ServiceTier.STANDARD,
            created_at=_parse_datetime(metadata.get("created_at")),
            created_by=_str(metadata.get("created_by")),
            updated_at=_parse_datetime(metadata.get("updated_at")),
            updated_by=_str(metadata.get("updated_by")),
            version=int(metadata.get("version") or 0),
        ),
        spec=ServiceSpec(
            description=_str(spec.get("description")),
            team=ServiceTeam(
                github_team=_str(team.get("github_team")),
                members=[_str(member) for member in team.get("members") or []],
                github_url=_str(team.get("github_url")),
            ),
            business=ServiceBusiness(
                sla_target=_str(business.get("sla_target")),
                dependencies=[_str(dep) for dep in business.get("dependencies") or []],
                impact=_str(business.get("impact")),
            ),
            technology=technology,
            kubernetes=kubernetes,
            observability=observability,
            runbooks=[
                ServiceRunbook(name=_str(rb["name"]), url=_str(rb["url"]))
                for rb in spec.get("runbooks") or []
            ],
        ),
    )


def _environment_to_dict(environment: KubernetesEnvironment) -> dict[str, Any]:
    resources: dict[str, Any] = {
        "deployments": [
            _deployment_to_dict(deployment)
            for deployment in environment.resources.deployments
        ]
    }
    if environment.resources.services:
        resources["services"] = list(environment.resources.services)
    if environment.resources.configmaps:
        resources["configmaps"] = list(environment.resources.configmaps)

    return {
        "name": environment.name,
        "context": environment.context,
        "namespace": environment.namespace,
        "resources": resources,
    }


def _deployment_to_dict(deployment: KubernetesDeployment) -> dict[str, Any]:
    result: dict[str, Any] = {"name": deployment.name, "replicas": deployment.replicas}

    resources = {}
    for key in ("requests", "limits"):
        spec: KubernetesResourceSpec = getattr(deployment.resources, key)
        if not spec.is_empty():
            resources[key] = _compact({"cpu": spec.cpu, "memory": spec.memory})
    if resources:
        result["resources"] = resources

    return result


def _environment_from_dict(data: dict[str, Any]) -> KubernetesEnvironment:
    resources = _mapping(data.get("resources") or {}, "resources")
    return KubernetesEnvironment(
        name=_str(data.get("name")),
        context=_str(data.get("context")),
        namespace=_str(data.get("namespace")),
        resources=KubernetesEnvironmentResources(
            deployments=[
                _deployment_from_dict(_mapping(dep, "resources.deployments[]"))
                for dep in resources.get("deployments") or []
            ],
            services=[_str(name) for name in resources.get("services") or []],
            configmaps=[_str(name) for name in resources.get("configmaps") or []],
        ),
    )


def _deployment_from_dict(data: dict[str, Any]) -> KubernetesDeployment:
    resources = _mapping(data.get("resources") or {}, "deployment.resources")
    requests = _mapping(resources.get("requests") or {}, "resources.requests")
    limits = _mapping(resources.get("limits") or {}, "resources.limits")

    return KubernetesDeployment(
        name=_str(data.get("name")),
        replicas=int(data.get("replicas", 1)),
        resources=KubernetesResourceRequests(
            requests=KubernetesResourceSpec(
                cpu=_str(requests.get("cpu")), memory=_str(requests.get("memory"))
            ),
            limits=KubernetesResourceSpec(
                cpu=_str(limits.get("cpu")), memory=_str(limits.get("memory"))
            ),
        ),
    )


def _compact(values: dict[str, Any], keep: tuple[str, ...] = ()) -> dict[str, Any]:
    """Drop empty values, except for the keys in keep."""
    return {k: v for k, v in values.items() if k in keep or v not in ("", None, [], {})}


def _mapping(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{path} must be a mapping, got {type(value).__name__}")
    return value


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _tier_value(tier: ServiceTier | str) -> str:
    return tier.value if isinstance(tier, ServiceTier) else str(tier)


def _format_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or a YAML-native timestamp (assumed UTC if naive)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"invalid timestamp {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
