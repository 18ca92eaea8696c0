"""Kubernetes infrastructure abstraction layer.

This module provides a clean abstraction over Kubernetes operations,
supporting multiple backends (kubectl subprocess, kr8s library).

Example:
    from kubefunc.infra.k8s import KubectlController, run_sync

    # Create controller
    controller = KubectlController()

    # Use async methods in sync context
    if not run_sync(controller.namespace_exists("functions")):
        run_sync(controller.create_namespace("functions"))
"""

from .controller import CommandResult, KubernetesController
from .helpers import get_k8s_controller
from .kr8s_controller import Kr8sController
from .kubectl_controller import KubectlController
from .utils import run_sync

__all__ = [
    # Controller classes
    "KubernetesController",
    "KubectlController",
    "Kr8sController",
    # Data classes
    "CommandResult",
    # Utilities
    "get_k8s_controller",
    "run_sync",
]
