"""Docker command abstractions.

This module provides commands for Docker image operations: building and
pushing the function app image, and copying files out of an image without
running it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from .runner import CommandRunner


class DockerCommands:
    """Docker-related shell commands.

    Provides operations for:
    - Image management (build, push)
    - Container filesystem access (create, copy out, remove)
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize Docker commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Image Management
    # =========================================================================

    def build_image(
        self,
        image_tag: str,
        context_dir: Path,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Build a Docker image from a local build context.

        Args:
            image_tag: Tag to apply to the built image
            context_dir: Directory containing the Dockerfile
            on_output: Optional callback receiving each line of build output

        Returns:
            CommandResult with build status. Output is merged into stdout.

        Example:
            >>> docker.build_image("registry.io/orders", Path("."))
        """
        return self._runner.run_streaming(
            ["docker", "build", "-t", image_tag, str(context_dir)],
            cwd=context_dir,
            on_output=on_output,
        )

    def push_image(
        self,
        image_tag: str,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Push a Docker image to a remote registry.

        Args:
            image_tag: Full image tag including registry
                      (e.g., "registry.example.com/app:v1")
            on_output: Optional callback receiving each line of push output

        Returns:
            CommandResult with push status
        """
        return self._runner.run_streaming(
            ["docker", "push", image_tag], on_output=on_output
        )

    # =========================================================================
    # Container Filesystem
    # =========================================================================

    def create_container(self, image_tag: str) -> CommandResult:
        """Create (but do not start) a container from an image.

        The container ID is returned in stdout. Creating a container pulls
        the image if it is not present locally.
        """
        return self._runner.run(["docker", "create", image_tag])

    def copy_from_container(
        self, container_id: str, source: str, destination: Path
    ) -> CommandResult:
        """Copy a path out of a container's filesystem.

        Args:
            container_id: Container ID or name
            source: Absolute path inside the container
            destination: Local destination path

        Returns:
            CommandResult with copy status
        """
        return self._runner.run(
            ["docker", "cp", f"{container_id}:{source}", str(destination)]
        )

    def remove_container(self, container_id: str) -> CommandResult:
        """Remove a container, stopped or not."""
        return self._runner.run(["docker", "rm", "-f", container_id])
