"""Terminal output for kubefunc commands.

Everything here writes to stderr. stdout is reserved for --dry-run
manifests so they can be redirected into a file or piped to kubectl.
"""

from collections.abc import Callable
from functools import wraps

import typer
from rich.console import Console, ConsoleRenderable
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text


class CLIConsole:
    """Rich console wrapper with the message styles used by commands."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = 1
    ) -> None:
        """Report a failed command and exit.

        ``message`` and ``details`` are printed literally; tool output often
        contains square brackets that rich would otherwise read as markup.

        Raises:
            typer.Exit: Always, with ``exit_code``
        """
        self.console.print(f"\n[bold red]❌ {escape(message)}[/bold red]\n")
        if details:
            self.console.print(Panel(Text(details), title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_header(self, title: str, style: str = "blue") -> None:
        self.console.print(
            Panel.fit(f"[bold {style}]{title}[/bold {style}]", border_style=style)
        )


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Turn deployment failures into a message, a details panel and exit 1.

    The message is prefixed with the failing stage, e.g.
    ``Push failed: Failed to push registry.io/orders``. Ctrl-C exits 130.
    Other exceptions propagate.
    """
    from kubefunc.cli.deployment.errors import DeploymentError

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except DeploymentError as e:
            prefix = f"{e.stage.capitalize()} failed: " if e.stage else ""
            console.handle_error(f"{prefix}{e.message}", e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Deployment interrupted.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()
