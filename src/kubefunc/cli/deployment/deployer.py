"""Function app deployer for Kubernetes.

This module provides the FunctionsDeployer class which orchestrates a
deployment run:

    resolve image -> [build] -> discover triggers -> generate manifests
        dry run: print manifests
        live:    ensure namespace -> [push] -> apply manifests one by one

Build and push only happen when the image comes from --registry. A failure
at any stage ends the run; nothing is retried or rolled back. Manifests
applied before a failed apply stay in the cluster and are reported.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from loguru import logger

from kubefunc.infra.constants import DEFAULT_CONSTANTS, DeploymentConstants

from .base import BaseDeployer
from .errors import (
    ApplyError,
    BuildError,
    DeploymentError,
    NamespaceError,
    PushError,
)
from .image_resolver import resolve_image
from .manifests import (
    Manifest,
    build_deployment_resources,
    describe_resource,
    serialize_resources,
)
from .models import (
    DeploymentOutcome,
    DeploymentRequest,
    ResolvedImage,
    TriggersPayload,
    WorkerRuntime,
)
from .settings import LocalSettings
from .shell_commands import CommandResult, ShellCommands
from .trigger_discovery import select_discovery_strategy

if TYPE_CHECKING:
    from rich.console import Console

# Lines of tool output kept in error details
_DETAIL_LINES = 20


def _tail(result: CommandResult) -> str | None:
    output = result.output
    if not output:
        return None
    return "\n".join(output.splitlines()[-_DETAIL_LINES:])


class FunctionsDeployer(BaseDeployer):
    """Deploys a function app to Kubernetes.

    Attributes:
        commands: Shell command executor (docker, dotnet, kubectl)
        settings: Provider for the app settings and worker runtime
        constants: Deployment configuration constants
        show_output: Let kubectl apply write its output to the terminal
    """

    def __init__(
        self,
        console: Console,
        project_root: Path,
        *,
        commands: ShellCommands | None = None,
        settings: LocalSettings | None = None,
        constants: DeploymentConstants | None = None,
        emit: Callable[[str], Any] = typer.echo,
        show_output: bool = True,
    ):
        """Initialize the deployer.

        Args:
            console: Rich console for status output
            project_root: Function app project directory
            commands: Shell command executor (created for project_root if omitted)
            settings: App settings provider (reads project_root if omitted)
            constants: Optional deployment constants
            emit: Writes rendered manifests for --dry-run
            show_output: Stream kubectl apply output
        """
        super().__init__(console, project_root)
        self.commands = commands if commands is not None else ShellCommands(project_root)
        self.settings = settings if settings is not None else LocalSettings(project_root)
        self.constants = constants if constants is not None else DEFAULT_CONSTANTS
        self.emit = emit
        self.show_output = show_output

    # =========================================================================
    # Public Interface
    # =========================================================================

    def deploy(self, request: DeploymentRequest) -> DeploymentOutcome:
        """Run a deployment and raise on failure.

        Raises:
            DeploymentError: The first failing stage's error
        """
        outcome = self.run(request)
        if outcome.error is not None:
            raise outcome.error
        return outcome

    def run(self, request: DeploymentRequest) -> DeploymentOutcome:
        """Run a deployment and report the terminal outcome.

        Returns:
            Outcome carrying the failing stage's error, if any, and the
            manifests that were applied
        """
        outcome = DeploymentOutcome()
        try:
            self._execute(request, outcome)
        except DeploymentError as e:
            logger.debug("Deployment failed at stage {}: {}", e.stage, e.message)
            outcome.error = e
        return outcome

    # =========================================================================
    # Workflow
    # =========================================================================

    def _execute(self, request: DeploymentRequest, outcome: DeploymentOutcome) -> None:
        image = resolve_image(request)
        logger.info(
            "Resolved image {} (build required: {})",
            image.reference,
            image.requires_build,
        )

        secrets = self.settings.get_secrets()
        worker_runtime = self.settings.get_worker_runtime()

        if image.requires_build and not request.dry_run:
            self.build_image(image)

        triggers = self.discover_triggers(request, image, worker_runtime)
        resources = self.assemble(request, image, triggers, secrets, worker_runtime)

        if request.dry_run:
            outcome.rendered = serialize_resources(resources, request.output_format)
            self.emit(outcome.rendered)
            return

        self.info(f"Cluster context: {self.commands.kubectl.get_current_context()}")
        self.ensure_namespace(request.namespace)

        if image.requires_build:
            self.push_image(image)

        self.apply_all(resources, request.namespace, applied=outcome.applied)
        self._show_deployment_success(request, outcome)

    def build_image(self, image: ResolvedImage) -> None:
        """Build the image from the project directory.

        Raises:
            BuildError: If docker build fails
        """
        with self.console.status(f"[bold cyan]Building {image.reference}..."):
            result = self.commands.docker.build_image(
                image.reference,
                self.project_root,
                on_output=lambda line: logger.debug("docker build: {}", line),
            )
        if not result.success:
            raise BuildError(f"Failed to build {image.reference}", details=_tail(result))
        self.success(f"Built {image.reference}")

    def discover_triggers(
        self,
        request: DeploymentRequest,
        image: ResolvedImage,
        worker_runtime: WorkerRuntime,
    ) -> TriggersPayload:
        """Obtain trigger metadata with the strategy this run calls for.

        Raises:
            MetadataError: If local descriptor files are missing or invalid
            ToolError: If the project build or image inspection fails
        """
        strategy = select_discovery_strategy(
            request,
            image,
            commands=self.commands,
            project_dir=self.project_root,
            worker_runtime=worker_runtime,
            constants=self.constants,
        )
        logger.info("Discovering functions from {}", strategy.name)
        with self.console.status("[bold cyan]Reading function metadata..."):
            triggers = strategy.discover(image)

        if not triggers.function_bindings:
            self.warning("No functions with bindings were found")
        else:
            self.info(
                f"Found {len(triggers.function_bindings)} function(s): "
                + ", ".join(triggers.function_bindings)
            )
        return triggers

    def assemble(
        self,
        request: DeploymentRequest,
        image: ResolvedImage,
        triggers: TriggersPayload,
        secrets: dict[str, str],
        worker_runtime: WorkerRuntime,
    ) -> list[Manifest]:
        """Generate the resources for this deployment, in apply order."""
        return build_deployment_resources(
            request.name,
            image.reference,
            request.namespace,
            triggers,
            secrets,
            pull_secret=request.pull_secret,
            secrets_name=request.secrets_name,
            config_map_name=request.config_map_name,
            use_config_map=request.use_config_map,
            polling_interval=request.polling_interval,
            cooldown_period=request.cooldown_period,
            worker_runtime=worker_runtime,
        )

    def ensure_namespace(self, namespace: str) -> bool:
        """Create the namespace unless it already exists.

        Returns:
            True if the namespace was created by this call

        Raises:
            NamespaceError: If the namespace cannot be checked or created
        """
        kubectl = self.commands.kubectl
        try:
            exists = kubectl.namespace_exists(namespace)
        except Exception as e:
            raise NamespaceError(
                f"Could not check namespace {namespace}", details=str(e)
            ) from e

        if exists:
            logger.debug("Namespace {} already exists", namespace)
            return False

        result = kubectl.create_namespace(namespace)
        if not result.success:
            raise NamespaceError(
                f"Failed to create namespace {namespace}", details=_tail(result)
            )
        self.success(f"Created namespace {namespace}")
        return True

    def push_image(self, image: ResolvedImage) -> None:
        """Push the built image to its registry.

        Raises:
            PushError: If docker push fails
        """
        with self.console.status(f"[bold cyan]Pushing {image.reference}..."):
            result = self.commands.docker.push_image(
                image.reference,
                on_output=lambda line: logger.debug("docker push: {}", line),
            )
        if not result.success:
            raise PushError(f"Failed to push {image.reference}", details=_tail(result))
        self.success(f"Pushed {image.reference}")

    def apply_all(
        self,
        resources: list[Manifest],
        namespace: str,
        *,
        applied: list[str] | None = None,
    ) -> list[str]:
        """Apply resources one at a time, in order.

        Stops at the first failure. Already applied resources are left in
        the cluster.

        Args:
            resources: Resources in apply order
            namespace: Target namespace
            applied: List that receives each applied resource label

        Returns:
            Labels of the applied resources

        Raises:
            ApplyError: On the first resource that fails to apply
        """
        applied = applied if applied is not None else []
        labels = [describe_resource(resource) for resource in resources]

        for index, resource in enumerate(resources):
            result = self.commands.kubectl.apply(
                resource, namespace, show_output=self.show_output
            )
            if not result.success:
                raise ApplyError(
                    f"Failed to apply {labels[index]} "
                    f"({index + 1} of {len(resources)})",
                    details=self._partial_state_details(result, applied),
                    applied=list(applied),
                    pending=labels[index + 1 :],
                )
            applied.append(labels[index])
            logger.debug("Applied {}", labels[index])

        return applied

    # =========================================================================
    # Private Helpers
    # =========================================================================

    @staticmethod
    def _partial_state_details(result: CommandResult, applied: list[str]) -> str:
        lines = []
        output = _tail(result)
        if output:
            lines.append(output)
        if applied:
            lines.append("")
            lines.append("Already applied (left in the cluster):")
            lines.extend(f"  • {label}" for label in applied)
        else:
            lines.append("No resources were applied.")
        return "\n".join(lines)

    def _show_deployment_success(
        self, request: DeploymentRequest, outcome: DeploymentOutcome
    ) -> None:
        self.console.print(
            f"\n[bold green]🎉 Deployed {request.name} to namespace "
            f"{request.namespace} ({len(outcome.applied)} resources)[/bold green]"
        )
