"""Kubernetes manifest generation for function apps.

HTTP-triggered functions run in a ``<name>-http`` Deployment behind a
LoadBalancer Service. Every other function runs in a ``<name>`` Deployment
that KEDA scales through a ScaledObject built from the functions' trigger
bindings. Each Deployment only enables its own functions.

Resources are returned in apply order: app settings (Secret/ConfigMap),
then Deployments, then Service, then ScaledObject.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Iterable, Mapping
from typing import Any

import yaml

from kubefunc.infra.constants import DEFAULT_CONSTANTS

from .models import OutputFormat, TriggersPayload, WorkerRuntime

Manifest = dict[str, Any]

# KEDA scaler type for each function trigger binding (lowercased)
KEDA_TRIGGER_TYPES: dict[str, str] = {
    "queuetrigger": "azure-queue",
    "blobtrigger": "azure-blob",
    "servicebustrigger": "azure-servicebus",
    "eventhubtrigger": "azure-eventhub",
    "kafkatrigger": "kafka",
    "rabbitmqtrigger": "rabbitmq",
}

# Binding fields that describe the function signature, not the event source
_NON_METADATA_FIELDS = frozenset({"type", "direction", "name"})


# =============================================================================
# Binding inspection
# =============================================================================


def _binding_types(function_json: Mapping[str, Any]) -> list[str]:
    return [
        str(binding["type"])
        for binding in function_json.get("bindings") or []
        if isinstance(binding, Mapping) and binding.get("type")
    ]


def is_http_function(function_json: Mapping[str, Any]) -> bool:
    """Whether any binding of the function is an HTTP trigger."""
    return any("httptrigger" in t.lower() for t in _binding_types(function_json))


def get_keda_trigger_type(binding_type: str) -> str:
    """Map a function trigger binding type to a KEDA scaler type.

    Unknown trigger types are passed through unchanged.
    """
    return KEDA_TRIGGER_TYPES.get(binding_type.lower(), binding_type)


def get_scaler_triggers(triggers: TriggersPayload) -> list[dict[str, Any]]:
    """Build KEDA trigger entries from all non-HTTP trigger bindings."""
    scaler_triggers = []
    for function_json in triggers.function_bindings.values():
        for binding in function_json.get("bindings") or []:
            if not isinstance(binding, Mapping):
                continue
            binding_type = str(binding.get("type") or "")
            lowered = binding_type.lower()
            if "trigger" not in lowered or "httptrigger" in lowered:
                continue
            scaler_triggers.append(
                {
                    "type": get_keda_trigger_type(binding_type),
                    "metadata": {
                        key: value
                        for key, value in binding.items()
                        if key not in _NON_METADATA_FIELDS and isinstance(value, str)
                    },
                }
            )
    return scaler_triggers


# =============================================================================
# Resource builders
# =============================================================================


def _metadata(name: str, namespace: str, labels: dict[str, str] | None = None) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "namespace": namespace}
    if labels:
        metadata["labels"] = labels
    return metadata


def get_secret(name: str, namespace: str, values: Mapping[str, str]) -> Manifest:
    """Secret holding the app settings, base64-encoded."""
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": _metadata(name, namespace),
        "type": "Opaque",
        "data": {
            key: base64.b64encode(value.encode("utf-8")).decode("ascii")
            for key, value in values.items()
        },
    }


def get_config_map(name: str, namespace: str, values: Mapping[str, str]) -> Manifest:
    """ConfigMap holding the app settings in plain text."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": _metadata(name, namespace),
        "data": dict(values),
    }


def get_deployment(
    name: str,
    namespace: str,
    image: str,
    enabled_functions: Iterable[str],
    *,
    pull_secret: str | None = None,
    replicas: int = 1,
) -> Manifest:
    """Deployment running the function host with only the given functions enabled."""
    labels = {"app": name}
    env = [
        {
            "name": f"{DEFAULT_CONSTANTS.ENABLED_FUNCTION_ENV_PREFIX}{index}",
            "value": function_name,
        }
        for index, function_name in enumerate(enabled_functions)
    ]
    pod_spec: dict[str, Any] = {
        "containers": [
            {
                "name": name,
                "image": image,
                "env": env,
                "ports": [{"containerPort": DEFAULT_CONSTANTS.CONTAINER_PORT}],
            }
        ],
    }
    if pull_secret:
        pod_spec["imagePullSecrets"] = [{"name": pull_secret}]

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(name, namespace, labels),
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": labels},
            "template": {"metadata": {"labels": labels}, "spec": pod_spec},
        },
    }


def get_service(name: str, namespace: str, deployment: Manifest) -> Manifest:
    """LoadBalancer Service in front of a Deployment."""
    port = DEFAULT_CONSTANTS.CONTAINER_PORT
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(name, namespace),
        "spec": {
            "type": "LoadBalancer",
            "selector": deployment["spec"]["selector"]["matchLabels"],
            "ports": [{"protocol": "TCP", "port": port, "targetPort": port}],
        },
    }


def get_scaled_object(
    name: str,
    namespace: str,
    deployment: Manifest,
    triggers: TriggersPayload,
    *,
    polling_interval: int | None = None,
    cooldown_period: int | None = None,
) -> Manifest:
    """KEDA ScaledObject driving a Deployment from its trigger sources.

    Unset polling interval and cooldown period fall back to KEDA's defaults.
    """
    spec: dict[str, Any] = {
        "scaleTargetRef": {"name": deployment["metadata"]["name"]},
    }
    if polling_interval is not None:
        spec["pollingInterval"] = polling_interval
    if cooldown_period is not None:
        spec["cooldownPeriod"] = cooldown_period
    spec["triggers"] = get_scaler_triggers(triggers)

    return {
        "apiVersion": "keda.sh/v1alpha1",
        "kind": "ScaledObject",
        "metadata": _metadata(name, namespace, {"deploymentName": name}),
        "spec": spec,
    }


def _set_env_from(deployments: Iterable[Manifest], ref_kind: str, ref_name: str) -> None:
    for deployment in deployments:
        container = deployment["spec"]["template"]["spec"]["containers"][0]
        container["envFrom"] = [{ref_kind: {"name": ref_name}}]


def build_deployment_resources(
    name: str,
    image: str,
    namespace: str,
    triggers: TriggersPayload,
    secrets: Mapping[str, str],
    *,
    pull_secret: str | None = None,
    secrets_name: str | None = None,
    config_map_name: str | None = None,
    use_config_map: bool = False,
    polling_interval: int | None = None,
    cooldown_period: int | None = None,
    worker_runtime: WorkerRuntime = WorkerRuntime.NONE,
) -> list[Manifest]:
    """Generate every resource for a function app deployment.

    App settings reach the containers through ``envFrom``, taken from the
    first that applies:

    1. ``use_config_map``: a generated ConfigMap named ``name``
    2. ``secrets_name``: an existing Secret
    3. ``config_map_name``: an existing ConfigMap
    4. otherwise: a generated Secret named ``name``

    Returns:
        Resources in apply order
    """
    http_functions = [
        fn for fn, doc in triggers.function_bindings.items() if is_http_function(doc)
    ]
    other_functions = [
        fn for fn in triggers.function_bindings if fn not in http_functions
    ]

    deployments: list[Manifest] = []
    trailing: list[Manifest] = []

    if http_functions:
        http_name = f"{name}{DEFAULT_CONSTANTS.HTTP_SUFFIX}"
        deployment = get_deployment(
            http_name, namespace, image, http_functions, pull_secret=pull_secret
        )
        deployments.append(deployment)
        trailing.append(get_service(http_name, namespace, deployment))

    if other_functions:
        deployment = get_deployment(
            name, namespace, image, other_functions, pull_secret=pull_secret
        )
        deployments.append(deployment)
        trailing.append(
            get_scaled_object(
                name,
                namespace,
                deployment,
                triggers,
                polling_interval=polling_interval,
                cooldown_period=cooldown_period,
            )
        )

    settings = dict(secrets)
    runtime_key = DEFAULT_CONSTANTS.WORKER_RUNTIME_SETTING
    if runtime_key not in settings and worker_runtime is not WorkerRuntime.NONE:
        settings[runtime_key] = worker_runtime.value

    config_resources: list[Manifest] = []
    if use_config_map:
        config_resources.append(get_config_map(name, namespace, settings))
        _set_env_from(deployments, "configMapRef", name)
    elif secrets_name:
        _set_env_from(deployments, "secretRef", secrets_name)
    elif config_map_name:
        _set_env_from(deployments, "configMapRef", config_map_name)
    else:
        config_resources.append(get_secret(name, namespace, settings))
        _set_env_from(deployments, "secretRef", name)

    return [*config_resources, *deployments, *trailing]


# =============================================================================
# Serialization
# =============================================================================


def describe_resource(resource: Mapping[str, Any]) -> str:
    """Short "Kind/name" label for a resource."""
    return f"{resource.get('kind', '?')}/{resource.get('metadata', {}).get('name', '?')}"


def serialize_resources(
    resources: list[Manifest], output_format: OutputFormat = OutputFormat.YAML
) -> str:
    """Render resources as a YAML document stream or a JSON List."""
    if output_format is OutputFormat.JSON:
        return json.dumps(
            {"apiVersion": "v1", "kind": "List", "items": resources}, indent=2
        )
    return yaml.safe_dump_all(
        resources, sort_keys=False, explicit_start=True, default_flow_style=False
    )
