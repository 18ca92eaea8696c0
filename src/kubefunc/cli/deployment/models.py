"""Data types for a function app deployment run.

The request is caller-owned and immutable. Everything else is created by a
single deployment run and discarded when it finishes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from kubefunc.infra.constants import DEFAULT_CONSTANTS

from .errors import DeploymentError, DeploymentStage

# =============================================================================
# Enumerations
# =============================================================================


class OutputFormat(str, Enum):
    """Serialization formats for --dry-run output."""

    YAML = "yaml"
    JSON = "json"


class WorkerRuntime(str, Enum):
    """Function app language worker runtimes."""

    DOTNET = "dotnet"
    DOTNET_ISOLATED = "dotnet-isolated"
    NODE = "node"
    PYTHON = "python"
    JAVA = "java"
    POWERSHELL = "powershell"
    CUSTOM = "custom"
    NONE = "none"

    @classmethod
    def parse(cls, value: str | None) -> WorkerRuntime:
        """Parse a FUNCTIONS_WORKER_RUNTIME value, tolerating case and blanks."""
        if not value:
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NONE

    @property
    def requires_build(self) -> bool:
        """Whether function.json files only exist after compiling the project."""
        return self is WorkerRuntime.DOTNET


# =============================================================================
# Request
# =============================================================================


class DeploymentRequest(BaseModel):
    """Everything the user asked for on the command line.

    Example:
        ```python
        DeploymentRequest(name="orders", registry="registry.io", dry_run=True)
        ```
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        description="Name used for the deployment and all generated artifacts",
    )
    namespace: str = Field(
        default=DEFAULT_CONSTANTS.DEFAULT_NAMESPACE,
        description="Kubernetes namespace to deploy to",
    )
    registry: str | None = Field(
        default=None,
        description="Registry to build and push <registry>/<name> to",
    )
    image_name: str | None = Field(
        default=None,
        description="Existing image to deploy and read functions from",
    )
    pull_secret: str | None = Field(
        default=None,
        description="Secret holding private registry credentials",
    )
    secrets_name: str | None = Field(
        default=None,
        description="Existing secrets collection to use instead of generating one",
    )
    config_map_name: str | None = Field(
        default=None,
        description="Existing config map to use instead of generating a secret",
    )
    use_config_map: bool = Field(
        default=False,
        description="Generate the app settings as a ConfigMap instead of a Secret",
    )
    polling_interval: PositiveInt | None = Field(
        default=None,
        description="Polling interval (seconds) for non-HTTP triggers",
    )
    cooldown_period: PositiveInt | None = Field(
        default=None,
        description="Cooldown (seconds) before scaling back to zero",
    )
    dry_run: bool = False
    no_docker: bool = False
    output_format: OutputFormat = OutputFormat.YAML

    @field_validator("name", "namespace")
    @classmethod
    def _validate_resource_name(cls, value: str) -> str:
        if not DEFAULT_CONSTANTS.NAME_PATTERN.match(value):
            raise ValueError(
                f"'{value}' must be a lowercase RFC 1123 name "
                "(letters, digits and '-', starting and ending alphanumeric)"
            )
        return value


# =============================================================================
# Run state
# =============================================================================


@dataclass(frozen=True)
class ResolvedImage:
    """Image a deployment runs, and whether this run has to build it."""

    reference: str
    requires_build: bool


@dataclass
class TriggersPayload:
    """Trigger metadata for every function in the app.

    Attributes:
        host_config: Parsed host.json
        function_bindings: function name -> parsed function.json
    """

    host_config: dict[str, Any]
    function_bindings: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass
class DeploymentOutcome:
    """Terminal result of a deployment run.

    ``applied`` lists the manifests (as "Kind/name") that reached the
    cluster, including on failure.
    """

    error: DeploymentError | None = None
    applied: list[str] = field(default_factory=list)
    rendered: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def stage(self) -> DeploymentStage | None:
        return self.error.stage if self.error else None
