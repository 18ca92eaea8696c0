"""CLI command modules organized by deployment target.

Command Groups:
- kubernetes: Deploy function apps to a Kubernetes cluster
"""

from .kubernetes import kubernetes_app

__all__ = ["kubernetes_app"]
