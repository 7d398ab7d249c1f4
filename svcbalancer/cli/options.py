from pathlib import Path
from typing import Annotated

import typer

from svcbalancer.cli.utils import LogLevels

CLIContext = typer.Context

ConfigArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to the JSON configuration file of the balancer.",
        show_default=False,
    ),
]

VersionOption = Annotated[
    bool,
    typer.Option("--version", "-v", help="Show the installed version and exit.", is_eager=True),
]

HostOption = Annotated[
    str | None,
    typer.Option(help="Bind the server to this host. Defaults to the configured host."),
]

PortOption = Annotated[
    int | None,
    typer.Option(help="Bind the server to this port. Defaults to the configured port."),
]

LogLevelOption = Annotated[
    LogLevels,
    typer.Option(case_sensitive=False, help="Log level of the balancer."),
]

LogSerializeOption = Annotated[
    bool,
    typer.Option(help="Emit the balancer logs as JSON."),
]

ServerLogLevelOption = Annotated[
    LogLevels,
    typer.Option(case_sensitive=False, help="Log level of the uvicorn server."),
]
