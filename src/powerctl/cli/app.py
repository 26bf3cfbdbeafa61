from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from powerctl.utils.logging import setup_logging

from . import config as config_cmd
from . import devices as devices_cmd
from .info import register as register_info
from .init_cmd import register as register_init
from .power import register as register_power
from .probe import register as register_probe
from .schedule import register as register_schedule

app = typer.Typer(
    help="powerctl - shut down, restart and wake machines on your network",
    no_args_is_help=True,
)

app.add_typer(config_cmd.app, name="config")
app.add_typer(devices_cmd.app, name="devices")

register_init(app)
register_info(app)
register_power(app)
register_probe(app)
register_schedule(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write log output to this file"),
    ] = None,
) -> None:
    """powerctl CLI."""
    setup_logging(log_file=log_file)

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"powerctl version {get_version('powerctl')}")
        raise typer.Exit()
