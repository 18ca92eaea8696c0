"""Image source resolution.

Decides which image a deployment runs and whether it has to be built.
This runs before anything touches docker or the cluster.
"""

from __future__ import annotations

from .errors import ConfigurationError, MissingImageSource
from .models import DeploymentRequest, ResolvedImage


def resolve_image(request: DeploymentRequest) -> ResolvedImage:
    """Resolve the image reference for a deployment request.

    Args:
        request: The deployment request

    Returns:
        ``<registry>/<name>`` with a build when --registry is given,
        otherwise the --image-name reference as-is

    Raises:
        ConfigurationError: If both --registry and --image-name are given
        MissingImageSource: If neither is given
    """
    if request.registry and request.image_name:
        raise ConfigurationError(
            "--registry and --image-name are mutually exclusive.",
            details="--registry builds and pushes a new image; "
            "--image-name deploys an existing one.",
        )
    if request.registry:
        return ResolvedImage(
            reference=f"{request.registry}/{request.name}", requires_build=True
        )
    if request.image_name:
        return ResolvedImage(reference=request.image_name, requires_build=False)
    raise MissingImageSource()
