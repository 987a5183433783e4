#!/usr/bin/env python3
"""lxc - Wrapper around the lxc utilities to make managing containers easier."""
import sys
from typing import List, Optional

import typer
from rich.console import Console

from lxcctl import __version__
from lxcctl.cli_container_commands import register_container_commands
from lxcctl.cli_fleet_commands import register_fleet_commands
from lxcctl.cli_support import CliState
from lxcctl.core.logger import get_logger, set_verbose, setup_file_logging
from lxcctl.services.lxc.runtime import LxcRuntime

app = typer.Typer(
    name="lxc",
    help="""lxc - make managing containers easier

Containers that behave like vservers or jails, kept in line with
configuration management ('lxc resync').

Usage:
  lxc NAME create|destroy|start|stop|restart|enter|exec|console|status|resync
  lxc status|resync|autostart|stopall
""",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)

# Global options that consume the following argument
_VALUE_OPTIONS = {"--config", "-c", "--log-file"}


def _version_callback(value: bool) -> None:
    if value:
        lxc_version = LxcRuntime().version()
        if lxc_version:
            console.print(f"lxc version: {lxc_version}")
        console.print(f"lxc control script: {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to lxcctl.yml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output."),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also log to this file."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show the lxc and lxcctl versions.",
    ),
) -> None:
    ctx.obj = CliState(config_path=config, verbose=verbose)
    set_verbose(verbose)
    if log_file:
        setup_file_logging(log_file=log_file, verbose=verbose)


register_container_commands(app, console)
register_fleet_commands(app, console)

COMMANDS = {command.name for command in app.registered_commands}


def normalize_args(args: List[str]) -> List[str]:
    """Accept ``lxc NAME COMMAND`` as well as ``lxc COMMAND NAME``.

    The first two positional arguments are swapped when the first one is
    not a command but the second one is.
    """
    args = list(args)
    positions = []
    skip = False
    for i, arg in enumerate(args):
        if skip:
            skip = False
            continue
        if arg == "--":
            break
        if arg.startswith("-"):
            skip = arg in _VALUE_OPTIONS
            continue
        positions.append(i)
        if len(positions) == 2:
            break

    if len(positions) == 2:
        first, second = positions
        if args[first] not in COMMANDS and args[second] in COMMANDS:
            args[first], args[second] = args[second], args[first]
    return args


def main(argv: Optional[List[str]] = None) -> None:
    """Console script entrypoint."""
    args = sys.argv[1:] if argv is None else argv
    app(args=normalize_args(args), prog_name="lxc")


if __name__ == "__main__":
    main()
