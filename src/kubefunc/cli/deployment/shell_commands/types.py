"""Data types for shell command results.

CommandResult is re-exported from kubefunc.infra.k8s.controller so that
docker, dotnet and kubectl commands share one result type.
"""

from __future__ import annotations

from kubefunc.infra.k8s.controller import CommandResult

__all__ = ["CommandResult"]
