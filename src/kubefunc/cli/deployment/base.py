"""Base deployer class with shared functionality."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from rich.console import Console

from kubefunc.infra.constants import DeploymentPaths


class BaseDeployer(ABC):
    """Abstract base class for all deployers."""

    def __init__(self, console: Console, project_root: Path):
        """Initialize the deployer.

        Args:
            console: Rich console for output
            project_root: Path to the project root directory
        """
        self.console = console
        self.project_root = project_root
        # Load .env so backend selection and tool settings are available
        load_dotenv(DeploymentPaths(project_root).env_file, override=False)

    @abstractmethod
    def deploy(self, *args: Any, **kwargs: Any) -> Any:
        """Deploy the environment."""
        pass

    def success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✅ {message}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠️  {message}[/yellow]")

    def info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[blue]ℹ {message}[/blue]")
