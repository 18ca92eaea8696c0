"""Trigger metadata discovery.

A function app is a directory holding host.json plus one subdirectory per
function, each with a function.json describing its bindings. Two strategies
produce the same TriggersPayload from such a tree:

- LocalSourceDiscovery reads the project on disk (building it first for
  compiled runtimes). Used when previewing a deployment whose image has not
  been built, or when --no-docker is passed.
- BuiltImageDiscovery copies the app root out of the image and reads that.
  Used for everything else.
"""

from __future__ import annotations

import json
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from kubefunc.infra.constants import DEFAULT_CONSTANTS, DeploymentConstants

from .errors import ImageInspectionFailed, InvalidTriggerMetadata, ProjectBuildError
from .models import DeploymentRequest, ResolvedImage, TriggersPayload, WorkerRuntime

if TYPE_CHECKING:
    from .shell_commands import ShellCommands


# =============================================================================
# Descriptor parsing
# =============================================================================


def read_json_document(path: Path) -> dict[str, Any]:
    """Parse a JSON descriptor file that must hold an object.

    Raises:
        InvalidTriggerMetadata: If the file is missing, unreadable, not
                                valid JSON, or not a JSON object
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise InvalidTriggerMetadata(f"{path.name} not found", details=str(path)) from e
    except OSError as e:
        raise InvalidTriggerMetadata(f"Could not read {path.name}", details=str(e)) from e

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidTriggerMetadata(
            f"{path.name} is not valid JSON", details=f"{path}: {e}"
        ) from e

    if not isinstance(document, dict):
        raise InvalidTriggerMetadata(
            f"{path.name} must contain a JSON object", details=str(path)
        )
    return document


def scan_function_bindings(
    functions_path: Path,
    constants: DeploymentConstants = DEFAULT_CONSTANTS,
) -> dict[str, dict[str, Any]]:
    """Collect function.json documents from the immediate subdirectories.

    Documents without a non-null ``bindings`` field are skipped. Results are
    keyed by directory name; a later duplicate overwrites an earlier one.

    Raises:
        InvalidTriggerMetadata: If functions_path is not a directory or a
                                function.json cannot be parsed
    """
    if not functions_path.is_dir():
        raise InvalidTriggerMetadata(
            "Functions directory not found", details=str(functions_path)
        )

    functions: dict[str, dict[str, Any]] = {}
    for directory in sorted(p for p in functions_path.iterdir() if p.is_dir()):
        descriptor = directory / constants.FUNCTION_JSON
        if not descriptor.is_file():
            continue
        document = read_json_document(descriptor)
        if document.get("bindings") is None:
            logger.debug("Skipping {}: no bindings", descriptor)
            continue
        functions[directory.name] = document

    logger.debug("Found {} function(s) in {}", len(functions), functions_path)
    return functions


# =============================================================================
# Strategies
# =============================================================================


class DiscoveryStrategy(ABC):
    """Produces the trigger metadata for a deployment."""

    name: str = ""

    @abstractmethod
    def discover(self, image: ResolvedImage) -> TriggersPayload:
        """Return host config and per-function bindings.

        Args:
            image: The resolved image of this deployment
        """
        ...


class LocalSourceDiscovery(DiscoveryStrategy):
    """Reads trigger metadata from the project directory.

    Attributes:
        project_dir: Function app project directory (holds host.json)
        worker_runtime: Runtime of the project; compiled runtimes are built
                        into the output directory before scanning
    """

    name = "local source"

    def __init__(
        self,
        commands: ShellCommands,
        project_dir: Path,
        worker_runtime: WorkerRuntime,
        constants: DeploymentConstants = DEFAULT_CONSTANTS,
    ) -> None:
        self.commands = commands
        self.project_dir = project_dir
        self.worker_runtime = worker_runtime
        self.constants = constants

    def _functions_path(self) -> Path:
        if not (
            self.worker_runtime.requires_build
            and self.commands.dotnet.can_build(self.project_dir)
        ):
            return self.project_dir

        output_dir = self.project_dir / self.constants.DOTNET_OUTPUT_DIR
        logger.info("Building {} project into {}", self.worker_runtime.value, output_dir)
        result = self.commands.dotnet.build_project(self.project_dir, output_dir)
        if not result.success:
            raise ProjectBuildError(
                "Project build failed", details=result.output or None
            )
        return output_dir

    def discover(self, image: ResolvedImage) -> TriggersPayload:
        functions_path = self._functions_path()
        return TriggersPayload(
            host_config=read_json_document(self.project_dir / self.constants.HOST_JSON),
            function_bindings=scan_function_bindings(functions_path, self.constants),
        )


class BuiltImageDiscovery(DiscoveryStrategy):
    """Reads trigger metadata from the function app root inside an image."""

    name = "image"

    def __init__(
        self,
        commands: ShellCommands,
        constants: DeploymentConstants = DEFAULT_CONSTANTS,
    ) -> None:
        self.commands = commands
        self.constants = constants

    def _copy_app_root(self, image_ref: str, destination: Path) -> None:
        docker = self.commands.docker

        created = docker.create_container(image_ref)
        if not created.success:
            raise ImageInspectionFailed(
                f"Could not create a container from {image_ref}",
                details=created.output or None,
            )
        lines = created.stdout.strip().splitlines()
        if not lines:
            raise ImageInspectionFailed(
                f"docker create returned no container ID for {image_ref}",
                details=created.stderr.strip() or None,
            )
        container_id = lines[-1]

        try:
            copied = docker.copy_from_container(
                container_id, self.constants.IMAGE_APP_ROOT, destination
            )
        finally:
            removed = docker.remove_container(container_id)
            if not removed.success:
                logger.warning(
                    "Could not remove container {}: {}", container_id, removed.output
                )

        if not copied.success:
            raise ImageInspectionFailed(
                f"Could not copy {self.constants.IMAGE_APP_ROOT} from {image_ref}",
                details=copied.output or None,
            )

    def discover(self, image: ResolvedImage) -> TriggersPayload:
        with tempfile.TemporaryDirectory(prefix="kubefunc-") as tmp:
            app_root = Path(tmp) / "wwwroot"
            self._copy_app_root(image.reference, app_root)
            try:
                return TriggersPayload(
                    host_config=read_json_document(
                        app_root / self.constants.HOST_JSON
                    ),
                    function_bindings=scan_function_bindings(app_root, self.constants),
                )
            except InvalidTriggerMetadata as e:
                raise ImageInspectionFailed(
                    f"Invalid function metadata in {image.reference}: {e.message}",
                    details=e.details,
                ) from e


def select_discovery_strategy(
    request: DeploymentRequest,
    image: ResolvedImage,
    *,
    commands: ShellCommands,
    project_dir: Path,
    worker_runtime: WorkerRuntime,
    constants: DeploymentConstants = DEFAULT_CONSTANTS,
) -> DiscoveryStrategy:
    """Pick how trigger metadata is obtained for this run.

    | dry_run | requires_build | no_docker | strategy       |
    |---------|----------------|-----------|----------------|
    | True    | True           | any       | local source   |
    | any     | any            | True      | local source   |
    | other combinations                   | built image    |
    """
    if (request.dry_run and image.requires_build) or request.no_docker:
        return LocalSourceDiscovery(commands, project_dir, worker_runtime, constants)
    return BuiltImageDiscovery(commands, constants)
