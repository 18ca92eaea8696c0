"""Deployment constants and configuration.

This module centralizes all magic strings, paths, and configuration values
used throughout the function deployment process.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DeploymentConstants:
    """Constants for function app deployment to Kubernetes.

    This class provides a centralized location for all deployment-related
    constants, making them easy to find, update, and test.

    All attributes are class-level and immutable.
    """

    # Kubernetes identifiers
    DEFAULT_NAMESPACE: str = "default"
    NAMESPACE_ENV_VAR: str = "KUBEFUNC_NAMESPACE"
    BACKEND_ENV_VAR: str = "KUBEFUNC_K8S_BACKEND"

    # Function app descriptor files
    FUNCTION_JSON: str = "function.json"
    HOST_JSON: str = "host.json"
    LOCAL_SETTINGS_JSON: str = "local.settings.json"

    # Settings keys
    WORKER_RUNTIME_SETTING: str = "FUNCTIONS_WORKER_RUNTIME"
    ENABLED_FUNCTION_ENV_PREFIX: str = "AzureFunctionsJobHost__functions__"

    # Build output for runtimes that compile before discovery
    DOTNET_OUTPUT_DIR: str = "bin/output"

    # Location of the function app root inside the runtime image
    IMAGE_APP_ROOT: str = "/home/site/wwwroot"

    # Generated resource naming
    HTTP_SUFFIX: str = "-http"
    CONTAINER_PORT: int = 80

    # Kubernetes resource names: lowercase RFC 1123 labels
    NAME_PATTERN: re.Pattern[str] = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


DEFAULT_CONSTANTS = DeploymentConstants()


class DeploymentPaths:
    """Path resolver for files used during deployment.

    All paths are derived from the function app project directory.
    """

    def __init__(self, project_root: Path) -> None:
        """Initialize deployment paths.

        Args:
            project_root: Path to the function app project directory
        """
        self._project_root = project_root
        self._constants = DEFAULT_CONSTANTS

    @property
    def project_root(self) -> Path:
        """Get path to project root."""
        return self._project_root

    @property
    def local_settings_json(self) -> Path:
        """Get path to local.settings.json."""
        return self._project_root / self._constants.LOCAL_SETTINGS_JSON

    @property
    def env_file(self) -> Path:
        """Get path to the optional .env file."""
        return self._project_root / ".env"
