import platform

import rich
import typer

from svcbalancer.__about__ import __version__
from svcbalancer.cli.options import (
    CLIContext,
    ConfigArgument,
    HostOption,
    LogLevelOption,
    LogSerializeOption,
    PortOption,
    ServerLogLevelOption,
    VersionOption,
)
from svcbalancer.cli.runner import AppConfiguration, ApplicationRunner, ServerConfiguration
from svcbalancer.cli.utils import LogLevels, get_log_level
from svcbalancer.exceptions import BalancerException

app = typer.Typer(
    name="svcbalancer",
    help="A CLI to run the service balancer and its wallet/bbs worker pools.",
    pretty_exceptions_short=True,
    invoke_without_command=True,
    rich_markup_mode="markdown",
)


@app.callback()
def main(
    ctx: CLIContext,
    version: VersionOption = False,
) -> None:
    """
    Display helpful tips when the main command is run without any subcommands.
    """
    if version:
        typer.echo(
            f"Running svcbalancer {__version__} with {platform.python_implementation()} "
            f"{platform.python_version()} on {platform.system()}",
        )
        raise typer.Exit

    if ctx.invoked_subcommand is None:
        rich.print("\n[bold]Welcome to the service balancer CLI![/bold]")
        rich.print("\n[dim]Supervises wallet and bbs services and reports their status.[/dim]")
        rich.print("\n[bold]Usage[/bold]: [cyan]svcbalancer [COMMAND] [ARGS]...[/cyan]")
        rich.print("\n[bold]Common Commands:[/bold]")
        rich.print("  [green]run[/green]    Run the balancer from a configuration file.")
        rich.print("  [green]help[/green]   Get detailed help for a command.")
        rich.print(
            "\nRun '[cyan]svcbalancer --help[/cyan]' for "
            "a list of all available commands and options."
        )


@app.command()
def run(
    config: ConfigArgument,
    host: HostOption = None,
    port: PortOption = None,
    log_level: LogLevelOption = LogLevels.INFO,
    log_serialize: LogSerializeOption = False,
    server_log_level: ServerLogLevelOption = LogLevels.WARNING,
) -> None:
    """
    Run the balancer: spawn the worker pools and serve the status endpoint.
    """
    app_configuration = AppConfiguration(
        config_path=config,
        log_level=get_log_level(log_level),
        log_serialize=log_serialize,
    )
    server_configuration = ServerConfiguration(
        host=host,
        port=port,
        log_level=get_log_level(server_log_level),
    )

    application_runner = ApplicationRunner()
    try:
        application_runner.run(app_configuration, server_configuration)
    except BalancerException as e:
        rich.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


@app.command(name="help")
def show_help(ctx: typer.Context) -> None:
    """
    Show this message and exit.
    """
    if ctx.parent:
        rich.print(ctx.parent.get_help())


def execute_app() -> None:
    app()


if __name__ == "__main__":
    execute_app()
