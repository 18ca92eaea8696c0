"""Kr8s-based implementation of KubernetesController.

Uses the kr8s library for native async Kubernetes operations.
"""

from __future__ import annotations

from typing import Any

import kr8s
from kr8s.asyncio.objects import Namespace
from loguru import logger

from .controller import CommandResult, KubernetesController
from .kubectl_controller import KubectlController


class Kr8sController(KubernetesController):
    """Kubernetes controller using kr8s library.

    Namespace operations are natively async through kr8s. Applying resources
    goes through kubectl, since kr8s has no client-side apply.

    Note: The kr8s API client is NOT cached because it's tied to the event loop
    that was running when created. When using run_sync() which calls asyncio.run(),
    each call creates a new event loop, making the cached API unusable.
    """

    def __init__(self) -> None:
        self._kubectl = KubectlController()

    async def _get_api(self) -> Any:  # Returns kr8s._api.Api
        """Create the kr8s API client.

        Creates a new API client each call because kr8s clients are bound
        to the event loop they were created in.
        """
        return await kr8s.asyncio.api()

    # =========================================================================
    # Cluster Context
    # =========================================================================

    async def get_current_context(self) -> str:
        """Get the current kubectl context name."""
        try:
            api = await self._get_api()
            return api.auth.active_context or "unknown"
        except Exception:
            return "unknown"

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    async def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists."""
        api = await self._get_api()
        try:
            ns = await Namespace.get(namespace, api=api)
        except kr8s.NotFoundError:
            return False
        return ns is not None

    async def create_namespace(self, namespace: str) -> CommandResult:
        """Create a namespace."""
        try:
            api = await self._get_api()
            ns = Namespace(
                {
                    "apiVersion": "v1",
                    "kind": "Namespace",
                    "metadata": {"name": namespace},
                },
                api=api,
            )
            await ns.create()
        except Exception as e:
            logger.debug("Namespace creation failed: {}", e)
            return CommandResult(success=False, stderr=str(e), returncode=1)
        return CommandResult(success=True, stdout=f"namespace/{namespace} created")

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
        """Apply a resource document.

        kr8s has no client-side apply, so this goes through kubectl.
        """
        return await self._kubectl.apply_resource(
            resource, namespace, capture_output=capture_output
        )
