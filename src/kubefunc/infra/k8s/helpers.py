from __future__ import annotations

import os

from cachetools.func import lru_cache  # type: ignore

from kubefunc.infra.constants import DEFAULT_CONSTANTS
from kubefunc.infra.k8s.controller import KubernetesController


@lru_cache(maxsize=4)
def get_k8s_controller(backend: str | None = None) -> KubernetesController:
    """Get an instance of the KubernetesController.

    Args:
        backend: "kr8s" or "kubectl". Defaults to the KUBEFUNC_K8S_BACKEND
                 environment variable, then "kr8s".

    Returns:
        An instance of KubernetesController

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = (
        backend or os.environ.get(DEFAULT_CONSTANTS.BACKEND_ENV_VAR) or "kr8s"
    ).lower()

    if backend == "kubectl":
        from kubefunc.infra.k8s.kubectl_controller import KubectlController

        return KubectlController()
    if backend == "kr8s":
        from kubefunc.infra.k8s.kr8s_controller import Kr8sController

        return Kr8sController()
    raise ValueError(f"Unknown Kubernetes backend: {backend!r}")

