"""Kubectl-based implementation of KubernetesController.

Uses subprocess calls to kubectl for all operations.
"""

from __future__ import annotations

import asyncio
import subprocess
from typing import Any

import yaml
from loguru import logger

from .controller import CommandResult, KubernetesController


class KubectlController(KubernetesController):
    """Kubernetes controller using kubectl subprocess calls.

    All methods are async but internally use asyncio.to_thread()
    to run blocking subprocess calls without blocking the event loop.
    """

    async def _run_kubectl(
        self,
        args: list[str],
        *,
        capture_output: bool = True,
        input_data: str | None = None,
    ) -> CommandResult:
        """Run a kubectl command asynchronously.

        Args:
            args: Command arguments (without 'kubectl' prefix)
            capture_output: Whether to capture stdout/stderr
            input_data: Optional input to send to stdin

        Returns:
            CommandResult with execution results
        """
        cmd = ["kubectl", *args]
        logger.debug("Running {}", " ".join(cmd))

        def _run() -> CommandResult:
            result = subprocess.run(
                cmd,
                capture_output=capture_output,
                text=True,
                input=input_data,
            )
            return CommandResult(
                success=result.returncode == 0,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
                returncode=result.returncode,
            )

        return await asyncio.to_thread(_run)

    # =========================================================================
    # Cluster Context
    # =========================================================================

    async def get_current_context(self) -> str:
        """Get the current kubectl context name."""
        result = await self._run_kubectl(["config", "current-context"])
        return result.stdout.strip() if result.success else "unknown"

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    async def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists.

        Raises:
            RuntimeError: If kubectl fails for any reason other than the
                          namespace not being found
        """
        result = await self._run_kubectl(["get", "namespace", namespace])
        if result.success:
            return True
        stderr = result.stderr.lower()
        if "notfound" in stderr or "not found" in stderr:
            return False
        raise RuntimeError(result.output or f"kubectl get namespace {namespace} failed")

    async def create_namespace(self, namespace: str) -> CommandResult:
        """Create a namespace."""
        return await self._run_kubectl(["create", "namespace", namespace])

    # =========================================================================
    # Resource Operations
    # =========================================================================

    async def apply_resource(
        self,
        resource: dict[str, Any],
        namespace: str,
        *,
        capture_output: bool = True,
    ) -> CommandResult:
        """Apply a resource document by piping it to kubectl over stdin."""
        return await self._run_kubectl(
            ["apply", "-f", "-", "--namespace", namespace],
            capture_output=capture_output,
            input_data=yaml.safe_dump(resource, sort_keys=False),
        )
