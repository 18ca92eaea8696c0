"""Abstract Kubernetes controller interface.

Defines the contract for the Kubernetes operations a function deployment
needs, implemented by different backends (kubectl subprocess, kr8s library).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def output(self) -> str:
        """Best available diagnostic text for the command."""
        return (self.stderr or self.stdout).strip()


# =============================================================================
# Abstract Controller
# =============================================================================


class KubernetesController(ABC):
    """Abstract base class for Kubernetes operations.

    All methods are async to support both sync (kubectl) and async (kr8s)
    implementations. Use `run_sync()` to call from synchronous code.

    Example:
        from kubefunc.infra.k8s import KubectlController, run_sync

        controller = KubectlController()
        exists = run_sync(controller.namespace_exists("functions"))
    """

    # =========================================================================
    # Cluster Context
    # =========================================================================

    @abstractmethod
    async def get_current_context(self) -> str:
        """Get the current kubectl context name.

        Returns:
            Context name, or "unknown" if detection fails
        """
        ...

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    @abstractmethod
    async def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists.

        Args:
            namespace: Namespace to check

        Returns:
            True if the namespace exists, False if the cluster reports it
            as not found

        Raises:
            Exception: If the check itself fails (unreachable cluster,
                       missing permission)
        """
        ...

    @abstractmethod
    async def create_namespace(self, namespace: str) -> CommandResult:
        """Create a namespace.

        Args:
            namespace: Namespace to create

        Returns:
            CommandResult with creation status
        """
        ...

    # =========================================================================
    # Resource Operations
    # =========================================================================

    @abstractmethod
    async def apply_resource(
        self,
        resource: dict[str, Any],
        namespace: str,
        *,
        capture_output: bool = True,
    ) -> CommandResult:
        """Apply a single Kubernetes resource document.

        Apply overwrites the live object, so re-applying the same resource
        is safe.

        Args:
            resource: Resource document (apiVersion, kind, metadata, ...)
            namespace: Target namespace
            capture_output: Whether to capture stdout/stderr instead of
                            letting them pass through to the terminal

        Returns:
            CommandResult with apply status
        """
        ...
