"""Host-wide commands: status, resync, autostart, stopall."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from lxcctl.cli_support import (
    get_controller,
    handle_cli_error,
    is_verbose,
    print_error,
    print_success,
    render_report,
)
from lxcctl.core.errors import LxcError
from lxcctl.models.container import FleetReport
from lxcctl.services.lxc import FleetOrchestrator


def register_fleet_commands(root: typer.Typer, console: Console) -> None:
    """Attach host-wide commands to the main CLI."""

    def finish(report: FleetReport) -> None:
        failures = report.failures
        if failures:
            print_error(console, f"{len(failures)} of {len(report)} container(s) failed")
            raise typer.Exit(report.exit_code)

    @root.command("status")
    def status_command(
        ctx: typer.Context,
        name: Optional[str] = typer.Argument(None, help="Container to report on (default: all)."),
        brief: bool = typer.Option(False, "--brief", "-b", help="Print only the run state."),
    ) -> None:
        """Show the status of one or all containers."""
        try:
            controller = get_controller(ctx)
            if name:
                if brief:
                    console.print(controller.status(name).value)
                else:
                    console.print(controller.info(name).rstrip(), markup=False, highlight=False)
                return

            report = FleetOrchestrator(controller).status_all()
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        if brief:
            for item in report:
                console.print(f"{item.name} {(item.state.value if item.state else 'unknown')}")
        else:
            render_report(console, report, show_state=True)
        finish(report)

    @root.command("resync")
    def resync_command(
        ctx: typer.Context,
        name: Optional[str] = typer.Argument(None, help="Container to resync (default: all running)."),
        all_: bool = typer.Option(
            False, "--all", "-a",
            help="Also resync stopped containers, stopping them again afterwards.",
        ),
    ) -> None:
        """Re-apply configuration management in one or all containers."""
        try:
            controller = get_controller(ctx)
            if name:
                controller.resync(name)
                print_success(console, f"Resynced {name}")
                return

            report = FleetOrchestrator(controller).resync_all(all=all_)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        render_report(console, report)
        finish(report)

    @root.command("autostart")
    def autostart_command(ctx: typer.Context) -> None:
        """Start every container marked for autostart."""
        try:
            report = FleetOrchestrator(get_controller(ctx)).autostart_all()
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        render_report(console, report)
        finish(report)

    @root.command("stopall")
    def stopall_command(ctx: typer.Context) -> None:
        """Stop every running container."""
        try:
            report = FleetOrchestrator(get_controller(ctx)).stop_all()
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        render_report(console, report)
        finish(report)
