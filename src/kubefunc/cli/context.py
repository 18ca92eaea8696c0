"""Dependencies shared by kubefunc commands.

Commands receive a CLIContext through ``ctx.obj`` (tests inject one this
way) or build a fresh one for the function app in the current directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from kubefunc.cli.deployment.errors import ConfigurationError
from kubefunc.cli.deployment.settings import LocalSettings
from kubefunc.cli.deployment.shell_commands import ShellCommands
from kubefunc.cli.shared.console import CLIConsole, console
from kubefunc.infra.constants import (
    DEFAULT_CONSTANTS,
    DeploymentConstants,
    DeploymentPaths,
)
from kubefunc.infra.k8s import get_k8s_controller
from kubefunc.infra.k8s.controller import KubernetesController
from kubefunc.utils.paths import get_project_root


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands.

    ``commands.kubectl`` and ``k8s_controller`` share one controller, so
    the backend chosen by KUBEFUNC_K8S_BACKEND applies everywhere.
    """

    console: CLIConsole
    project_root: Path
    commands: ShellCommands
    k8s_controller: KubernetesController
    settings: LocalSettings
    constants: DeploymentConstants
    paths: DeploymentPaths


def build_cli_context(project_root: Path | None = None) -> CLIContext:
    """Wire the dependencies for a function app.

    Args:
        project_root: Function app directory; found from the current
                      directory (nearest host.json) when omitted

    Raises:
        ConfigurationError: If KUBEFUNC_K8S_BACKEND names an unknown backend
    """
    root = project_root or get_project_root()
    try:
        controller = get_k8s_controller()
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid {DEFAULT_CONSTANTS.BACKEND_ENV_VAR}",
            details=f'{e}. Use "kr8s" or "kubectl".',
        ) from e

    return CLIContext(
        console=console,
        project_root=root,
        commands=ShellCommands(root, controller),
        k8s_controller=controller,
        settings=LocalSettings(root),
        constants=DeploymentConstants(),
        paths=DeploymentPaths(root),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    return build_cli_context()
