"""Local app settings provider.

App settings live in the ``Values`` section of local.settings.json. They
become the Secret (or ConfigMap) the function containers read their
environment from.
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from kubefunc.infra.constants import DEFAULT_CONSTANTS, DeploymentPaths

from .errors import ConfigurationError
from .models import WorkerRuntime


class LocalSettings:
    """Reads app settings from a project's local.settings.json.

    A missing file means no settings. A file that exists but cannot be
    parsed is a configuration error.
    """

    def __init__(self, project_root: Path) -> None:
        self.path = DeploymentPaths(project_root).local_settings_json

    def get_secrets(self) -> dict[str, str]:
        """Return the app settings as string key/value pairs."""
        if not self.path.is_file():
            logger.debug("No {} found, using empty app settings", self.path)
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Could not read {self.path.name}", details=str(e)
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("Values") or {}, dict):
            raise ConfigurationError(
                f"Could not read {self.path.name}",
                details='Expected an object with a "Values" object.',
            )

        if data.get("IsEncrypted"):
            raise ConfigurationError(
                f"{self.path.name} is encrypted",
                details="Decrypt the settings file before deploying.",
            )

        values = data.get("Values") or {}
        return {
            str(key): "" if value is None else str(value)
            for key, value in values.items()
        }

    def get_worker_runtime(self) -> WorkerRuntime:
        """Detect the worker runtime from FUNCTIONS_WORKER_RUNTIME."""
        runtime = WorkerRuntime.parse(
            self.get_secrets().get(DEFAULT_CONSTANTS.WORKER_RUNTIME_SETTING)
        )
        logger.debug("Detected worker runtime: {}", runtime.value)
        return runtime
