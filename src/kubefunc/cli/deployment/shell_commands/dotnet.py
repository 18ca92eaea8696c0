"""dotnet command abstractions.

Compiled (.NET) function apps only have function.json files after a build,
so local trigger discovery builds them first.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner

PROJECT_FILE_PATTERNS = ("*.csproj", "*.fsproj")


class DotnetCommands:
    """dotnet-related shell commands."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def find_project_files(self, project_dir: Path) -> list[Path]:
        """List .NET project files directly inside a directory."""
        return sorted(
            path
            for pattern in PROJECT_FILE_PATTERNS
            for path in project_dir.glob(pattern)
        )

    def can_build(self, project_dir: Path) -> bool:
        """Check whether a directory holds exactly one buildable project."""
        return len(self.find_project_files(project_dir)) == 1

    def build_project(
        self, project_dir: Path, output_dir: Path, *, show_output: bool = False
    ) -> CommandResult:
        """Build the project in project_dir into output_dir.

        Args:
            project_dir: Directory containing the project file
            output_dir: Build output directory
            show_output: Pass build output through to the terminal

        Returns:
            CommandResult with build status
        """
        return self._runner.run(
            ["dotnet", "build", "--output", str(output_dir)],
            cwd=project_dir,
            capture_output=not show_output,
        )
