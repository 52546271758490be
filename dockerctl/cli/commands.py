"""
CLI commands for dockerctl.

Running ``dockerctl`` without a subcommand checks the environment and starts
the interactive session. The hidden ``preview`` subcommand is what the fuzzy
finder runs to fill its preview pane.
"""

import os
import logging
from importlib.metadata import PackageNotFoundError, version as package_version

import typer
from rich.console import Console
from rich.traceback import install as install_rich_traceback

from dockerctl.cli.interactive import Terminal, details_table
from dockerctl.core.controller import ActionController
from dockerctl.core.errors import DockerCtlError, EngineUnreachable, StartupDependencyMissing
from dockerctl.core.gateway import EngineGateway
from dockerctl.core.selector import Selector
from dockerctl.models.config import AppConfig
from dockerctl.utils.docker_utils import check_dependencies


app = typer.Typer(help="Interactive Docker container manager", add_completion=False)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger('dockerctl')


def configure_logging(debug: bool = False):
    """Configure logging for the process; quiet unless debugging."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()],
    )


def startup_checks(config: AppConfig, gateway: EngineGateway):
    """
    Verify the engine CLI, the fuzzy finder and the engine daemon.

    Raises:
        StartupDependencyMissing: If an executable is missing
        EngineUnreachable: If the daemon does not answer
    """
    check_dependencies(config)
    gateway.ping()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Log debug output to stderr"),
):
    """Select a container with fzf and run actions on it."""
    configure_logging(debug)
    if ctx.invoked_subcommand is not None:
        return

    install_rich_traceback()
    config = AppConfig.from_env()
    gateway = EngineGateway(config)
    logger.debug(f"Starting session with {config}")

    try:
        startup_checks(config, gateway)
    except StartupDependencyMissing as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        if e.hint:
            err_console.print(e.hint)
        raise typer.Exit(code=1)
    except EngineUnreachable as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    controller = ActionController(gateway, Selector(config), Terminal(config, console=console), config)
    try:
        exit_code = controller.run()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled[/yellow]")
        exit_code = 0
    raise typer.Exit(code=exit_code)


@app.command(hidden=True)
def preview(container: str = typer.Argument(..., help="Container ID to preview")):
    """Print the inspect summary of a container for the finder's preview pane."""
    width = int(os.environ.get("FZF_PREVIEW_COLUMNS", "0")) or None
    preview_console = Console(force_terminal=True, width=width, highlight=False)

    gateway = EngineGateway(AppConfig.from_env())
    try:
        details = gateway.inspect(container)
    except DockerCtlError as e:
        preview_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    preview_console.print(details_table(details))


@app.command()
def version():
    """Show version information."""
    try:
        console.print(f"[bold cyan]dockerctl[/bold cyan] v{package_version('dockerctl')}")
    except PackageNotFoundError:
        console.print("[bold cyan]dockerctl[/bold cyan] (version unknown)")


if __name__ == "__main__":
    app(prog_name="dockerctl")
