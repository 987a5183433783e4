"""Shared utilities for lxcctl CLI modules."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lxcctl.core.config import LxcConfig, load_config
from lxcctl.core.errors import LxcError, PermissionDenied
from lxcctl.models.container import FleetReport, Outcome, RunState
from lxcctl.services.lxc import LifecycleController, LxcRuntime


@dataclass
class CliState:
    """Options shared by every command, set by the root callback."""

    config_path: Optional[str] = None
    verbose: bool = False


def require_root() -> None:
    """Refuse to run unless invoked as root (real or effective)."""
    if os.geteuid() != 0 and os.getuid() != 0:
        raise PermissionDenied("You must be root")


def load_cli_config(ctx: typer.Context) -> LxcConfig:
    state = ctx.obj if isinstance(ctx.obj, CliState) else CliState()
    return load_config(state.config_path)


def build_controller(config: LxcConfig) -> LifecycleController:
    """Wire a LifecycleController to the real lxc tools."""
    return LifecycleController(config, LxcRuntime())


def get_controller(ctx: typer.Context) -> LifecycleController:
    """Check privileges, load config and return a controller."""
    require_root()
    return build_controller(load_cli_config(ctx))


def confirm_action(message: str, yes_flag: bool = False) -> bool:
    """Prompt user for confirmation unless --yes.

    Args:
        message: Confirmation message to display
        yes_flag: Skip prompt if True (from --yes flag)

    Returns:
        True if confirmed, False otherwise
    """
    if yes_flag:
        return True
    return typer.confirm(message)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: Optional[int] = None,
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use (default: the error's own exit code)
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}")
    if verbose:
        console.print_exception()
    if exit_code is None:
        exit_code = e.exit_code if isinstance(e, LxcError) else 1
    raise typer.Exit(exit_code)


def is_verbose(ctx: typer.Context) -> bool:
    return isinstance(ctx.obj, CliState) and ctx.obj.verbose


OUTCOME_STYLES = {
    Outcome.OK: "green",
    Outcome.DEGRADED: "yellow",
    Outcome.SKIPPED: "dim",
    Outcome.FAILED: "red",
}

STATE_STYLES = {
    RunState.RUNNING: "green",
    RunState.STOPPED: "yellow",
    RunState.UNKNOWN: "red",
}


def render_report(console: Console, report: FleetReport, show_state: bool = False) -> None:
    """Print a fleet report as a table."""
    if not len(report):
        print_info(console, "No containers found")
        return

    table = Table(title=f"lxc {report.operation}")
    table.add_column("Container", style="cyan")
    if show_state:
        table.add_column("State")
    else:
        table.add_column("Outcome")
    table.add_column("Detail", style="dim")

    for item in report:
        if show_state:
            state = item.state or RunState.UNKNOWN
            cell = f"[{STATE_STYLES[state]}]{state.value}[/{STATE_STYLES[state]}]"
        else:
            style = OUTCOME_STYLES[item.outcome]
            cell = f"[{style}]{item.outcome.value}[/{style}]"
        table.add_row(escape(item.name), cell, escape(item.detail))

    console.print(table)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    """Print error message with consistent formatting."""
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    """Print warning message with consistent formatting."""
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    """Print info message with consistent formatting."""
    console.print(f"[cyan]{prefix}[/cyan] {message}")
