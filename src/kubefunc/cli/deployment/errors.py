"""Deployment error hierarchy.

Every failure carries the stage it happened in. ``details`` holds recovery
hints or the collaborator's own diagnostic output.
"""

from __future__ import annotations

from enum import Enum


class DeploymentStage(str, Enum):
    """Stages of a deployment run, in execution order."""

    RESOLVE = "resolve"
    BUILD = "build"
    DISCOVER = "discover"
    NAMESPACE = "namespace"
    PUSH = "push"
    APPLY = "apply"


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    stage: DeploymentStage | None = None

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


# =============================================================================
# Configuration errors (detected before any side effect)
# =============================================================================


class ConfigurationError(DeploymentError):
    """Invalid combination of deployment options."""

    stage = DeploymentStage.RESOLVE


class MissingImageSource(ConfigurationError):
    """Neither --image-name nor --registry was supplied."""

    def __init__(self) -> None:
        super().__init__(
            "either --image-name or --registry is required.",
            details="Use --registry to build and push a new image, or "
            "--image-name to deploy an existing one.",
        )


# =============================================================================
# Metadata errors
# =============================================================================


class MetadataError(DeploymentError):
    """Trigger metadata could not be read."""

    stage = DeploymentStage.DISCOVER


class InvalidTriggerMetadata(MetadataError):
    """A descriptor file is missing or is not valid JSON."""


# =============================================================================
# Tool errors (external collaborator failures, never retried)
# =============================================================================


class ToolError(DeploymentError):
    """An external tool (docker, dotnet, kubectl) reported a failure."""


class BuildError(ToolError):
    stage = DeploymentStage.BUILD


class ImageInspectionFailed(ToolError):
    stage = DeploymentStage.DISCOVER


class ProjectBuildError(ToolError):
    """The language runtime build step needed for local discovery failed."""

    stage = DeploymentStage.DISCOVER


class NamespaceError(ToolError):
    stage = DeploymentStage.NAMESPACE


class PushError(ToolError):
    stage = DeploymentStage.PUSH


class ApplyError(ToolError):
    """Applying a manifest failed.

    Manifests applied before the failing one stay in the cluster; they are
    listed in ``applied``.
    """

    stage = DeploymentStage.APPLY

    def __init__(
        self,
        message: str,
        details: str | None = None,
        *,
        applied: list[str] | None = None,
        pending: list[str] | None = None,
    ):
        super().__init__(message, details)
        self.applied = applied or []
        self.pending = pending or []
