from __future__ import annotations

from typing import Annotated

import typer

from devhub.utils.logging import setup_logging

from . import config as config_cmd
from . import devices as devices_cmd
from . import software as software_cmd
from .info import register as register_info
from .init_cmd import register as register_init
from .mock import register as register_mock
from .status import register as register_status

app = typer.Typer(
    help="devhub - manage devices and their software connections",
    no_args_is_help=True,
)

app.add_typer(software_cmd.app, name="software")
app.add_typer(devices_cmd.app, name="devices")
app.add_typer(config_cmd.app, name="config")

register_init(app)
register_status(app)
register_info(app)
register_mock(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """devhub CLI."""
    setup_logging()

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"devhub version {get_version('devhub')}")
        raise typer.Exit()
