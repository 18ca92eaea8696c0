"""Kubectl command abstractions.

This module provides commands for Kubernetes resource management,
delegating to a KubernetesController for the actual operations.

This is a sync wrapper around the async controller so the deployer can
call it from plain synchronous code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kubefunc.infra.k8s import get_k8s_controller, run_sync

from .types import CommandResult

if TYPE_CHECKING:
    from kubefunc.infra.k8s.controller import KubernetesController


class KubectlCommands:
    """Kubectl-related commands.

    All methods delegate to the async controller using run_sync().

    Provides operations for:
    - Cluster context detection
    - Namespace management
    - Applying resource documents
    """

    def __init__(
        self,
        controller: KubernetesController | None = None,
    ) -> None:
        """Initialize kubectl commands.

        Args:
            controller: Kubernetes controller (defaults to the configured backend)
        """
        self._controller = (
            controller if controller is not None else get_k8s_controller()
        )

    @property
    def controller(self) -> KubernetesController:
        return self._controller

    # =========================================================================
    # Cluster Context
    # =========================================================================

    def get_current_context(self) -> str:
        """Get the current kubectl context name."""
        return run_sync(self._controller.get_current_context())

    # =========================================================================
    # Namespace Management
    # =========================================================================

    def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists."""
        return run_sync(self._controller.namespace_exists(namespace))

    def create_namespace(self, namespace: str) -> CommandResult:
        """Create a namespace."""
        return run_sync(self._controller.create_namespace(namespace))

    # =========================================================================
    # Resource Operations
    # =========================================================================

    def apply(
        self,
        resource: dict[str, Any],
        namespace: str,
        *,
        show_output: bool = False,
    ) -> CommandResult:
        """Apply a single resource document to a namespace.

        Args:
            resource: Resource document
            namespace: Target namespace
            show_output: Let kubectl write directly to the terminal

        Returns:
            CommandResult with apply status
        """
        return run_sync(
            self._controller.apply_resource(
                resource, namespace, capture_output=not show_output
            )
        )
