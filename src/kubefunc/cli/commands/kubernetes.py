"""Kubernetes deployment commands.

This module provides the ``kubernetes deploy`` command, which builds
(optionally), generates and applies the Kubernetes resources for a
function app.
"""

from typing import Annotated

import typer
from pydantic import ValidationError

from kubefunc.cli.context import get_cli_context
from kubefunc.cli.deployment.deployer import FunctionsDeployer
from kubefunc.cli.deployment.errors import ConfigurationError
from kubefunc.cli.deployment.models import DeploymentRequest, OutputFormat
from kubefunc.cli.shared.console import with_error_handling
from kubefunc.infra.constants import DEFAULT_CONSTANTS

# ---------------------------------------------------------------------------
# Typer App
# ---------------------------------------------------------------------------

kubernetes_app = typer.Typer(
    name="kubernetes",
    help="Kubernetes deployment commands.",
    no_args_is_help=True,
)


def _build_request(**options: object) -> DeploymentRequest:
    """Validate command-line options into a DeploymentRequest.

    Raises:
        ConfigurationError: If an option value is invalid
    """
    try:
        return DeploymentRequest.model_validate(options)
    except ValidationError as e:
        details = "\n".join(
            f"--{'.'.join(str(p) for p in err['loc']).replace('_', '-')}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError("Invalid deployment options", details=details) from e


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@kubernetes_app.command()
@with_error_handling
def deploy(
    ctx: typer.Context,
    name: Annotated[
        str,
        typer.Option(
            "--name",
            help="The name used for the deployment and other artifacts in kubernetes",
        ),
    ],
    image_name: Annotated[
        str | None,
        typer.Option(
            "--image-name",
            help="Image to use for the pod deployment and to read functions from",
        ),
    ] = None,
    registry: Annotated[
        str | None,
        typer.Option(
            "--registry",
            help="When set, a docker build is run and an image is pushed to "
            "<registry>/<name>. Mutually exclusive with --image-name. "
            "For Docker Hub, use your username.",
        ),
    ] = None,
    namespace: Annotated[
        str,
        typer.Option(
            "--namespace",
            "-n",
            envvar=DEFAULT_CONSTANTS.NAMESPACE_ENV_VAR,
            help="Kubernetes namespace to deploy to",
        ),
    ] = DEFAULT_CONSTANTS.DEFAULT_NAMESPACE,
    pull_secret: Annotated[
        str | None,
        typer.Option(
            "--pull-secret",
            help="The secret holding private registry credentials",
        ),
    ] = None,
    polling_interval: Annotated[
        int | None,
        typer.Option(
            "--polling-interval",
            help="The polling interval for checking non-http triggers. "
            "Default: 30 (seconds)",
        ),
    ] = None,
    cooldown_period: Annotated[
        int | None,
        typer.Option(
            "--cooldown-period",
            help="The cooldown period before scaling back to 0 after all "
            "triggers are no longer active. Default: 300 (seconds)",
        ),
    ] = None,
    secrets_name: Annotated[
        str | None,
        typer.Option(
            "--secrets-name",
            help="The name of a secrets collection to use instead of "
            "generating one from local.settings.json",
        ),
    ] = None,
    config_map_name: Annotated[
        str | None,
        typer.Option(
            "--config-map-name",
            help="The name of a config map to use in the deployment",
        ),
    ] = None,
    no_docker: Annotated[
        bool,
        typer.Option(
            "--no-docker",
            help="Read functions from the current directory instead of "
            "inspecting the image",
        ),
    ] = False,
    use_config_map: Annotated[
        bool,
        typer.Option(
            "--use-config-map",
            help="Create local.settings.json values as a ConfigMap instead "
            "of a Secret",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show the deployment template without building or applying",
        ),
    ] = False,
    output: Annotated[
        OutputFormat,
        typer.Option(
            "--output",
            "-o",
            help="With --dry-run, print the resources as yaml or json",
            case_sensitive=False,
        ),
    ] = OutputFormat.YAML,
) -> None:
    """Deploy a function app to Kubernetes.

    This command:
    - Builds and pushes <registry>/<name> when --registry is given
    - Reads the function triggers from the image (or local files)
    - Generates Deployments, Service, Secret/ConfigMap and KEDA ScaledObject
    - Creates the namespace if needed and applies every resource

    Examples:
        kubefunc kubernetes deploy --name orders --registry myregistry.azurecr.io
        kubefunc kubernetes deploy --name orders --image-name myregistry.azurecr.io/orders:v1
        kubefunc kubernetes deploy --name orders --registry ghcr.io/me --dry-run > orders.yaml
    """
    request = _build_request(
        name=name,
        namespace=namespace,
        registry=registry,
        image_name=image_name,
        pull_secret=pull_secret,
        secrets_name=secrets_name,
        config_map_name=config_map_name,
        use_config_map=use_config_map,
        polling_interval=polling_interval,
        cooldown_period=cooldown_period,
        dry_run=dry_run,
        no_docker=no_docker,
        output_format=output,
    )

    cli = get_cli_context(ctx)
    if not dry_run:
        cli.console.print_header(f"Deploying {name} to Kubernetes")

    deployer = FunctionsDeployer(
        cli.console.console,
        cli.project_root,
        commands=cli.commands,
        settings=cli.settings,
        constants=cli.constants,
    )
    deployer.deploy(request)
