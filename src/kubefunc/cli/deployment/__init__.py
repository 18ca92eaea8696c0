"""Function app deployment to Kubernetes.

The package is organized into focused modules:
- image_resolver: Picks the image and whether it must be built
- trigger_discovery: Reads function trigger metadata (local source or image)
- manifests: Generates and serializes the Kubernetes resources
- settings: Local app settings and worker runtime
- deployer: FunctionsDeployer, which sequences the whole run
- shell_commands: docker, dotnet and kubectl abstractions
"""

from .deployer import FunctionsDeployer
from .errors import DeploymentError, DeploymentStage
from .models import DeploymentOutcome, DeploymentRequest, OutputFormat

__all__ = [
    "FunctionsDeployer",
    "DeploymentError",
    "DeploymentStage",
    "DeploymentOutcome",
    "DeploymentRequest",
    "OutputFormat",
]
