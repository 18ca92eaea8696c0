"""Main CLI application module.

This module provides the main entry point for the kubefunc CLI.
"""

from typing import Annotated

import typer

from kubefunc.utils.logging import configure_logging

from .commands import kubernetes_app

# Create the main CLI application
app = typer.Typer(
    help="🚀 kubefunc - Deploy function apps to Kubernetes",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def _root(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logs on stderr"),
    ] = False,
) -> None:
    configure_logging(verbose)


app.add_typer(kubernetes_app, name="kubernetes", help="Kubernetes deployment commands")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
