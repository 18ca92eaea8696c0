"""Shell command abstractions for function app deployment.

This package provides a clean, well-documented interface for shell commands
used during deployment. It is organized into specialized modules for each tool:

- docker: Image build, push and filesystem copy
- dotnet: Project build for compiled function apps
- kubectl: Namespace management and resource apply

Usage:
    from kubefunc.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands(project_root=Path("."))
    if not commands.kubectl.namespace_exists("functions"):
        commands.kubectl.create_namespace("functions")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .docker import DockerCommands
from .dotnet import DotnetCommands
from .kubectl import KubectlCommands
from .runner import CommandRunner
from .types import CommandResult

if TYPE_CHECKING:
    from kubefunc.infra.k8s.controller import KubernetesController


class ShellCommands:
    """Unified interface for all shell command operations.

    This class provides a facade over the specialized command modules,
    offering a single point of access for deployment operations while
    maintaining separation of concerns internally.

    Attributes:
        docker: Docker-related commands
        dotnet: dotnet build commands
        kubectl: Kubernetes commands
    """

    def __init__(
        self,
        project_root: Path,
        controller: KubernetesController | None = None,
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            project_root: Path to the project root directory.
                         Commands will be executed from this directory by default.
            controller: Optional Kubernetes controller for kubectl commands
        """
        self._project_root = Path(project_root)
        self._runner = CommandRunner(self._project_root)

        self.docker = DockerCommands(self._runner)
        self.dotnet = DotnetCommands(self._runner)
        self.kubectl = KubectlCommands(controller)

    @property
    def project_root(self) -> Path:
        """Get the project root path."""
        return self._project_root


__all__ = [
    "ShellCommands",
    "CommandResult",
    "DockerCommands",
    "DotnetCommands",
    "KubectlCommands",
    "CommandRunner",
]
