"""Commands acting on a single container."""
from __future__ import annotations

import os
from typing import List, Optional

import typer
from rich.console import Console

from lxcctl.cli_support import (
    confirm_action,
    get_controller,
    handle_cli_error,
    is_verbose,
    print_info,
    print_success,
    print_warning,
)
from lxcctl.core.errors import LxcError


def register_container_commands(root: typer.Typer, console: Console) -> None:
    """Attach per-container commands to the main CLI."""

    @root.command("create")
    def create_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container to create."),
        user: Optional[str] = typer.Option(
            None, "--user", "-u",
            help="Host user to copy into the container (default: the user running sudo).",
        ),
        install_user: bool = typer.Option(
            True, "--install-user/--no-install-user",
            help="Bind mount /home and copy the invoking user into the container.",
        ),
        mirror: Optional[str] = typer.Option(None, "--mirror", "-m", help="Package mirror to use instead of archive.ubuntu.com."),
        autostart: bool = typer.Option(False, "--autostart", help="Start this container on 'lxc autostart'."),
        packages: bool = typer.Option(True, "--packages/--no-packages", help="Install baseline packages."),
    ) -> None:
        """Create a new container."""
        try:
            controller = get_controller(ctx)
            if install_user and not user:
                user = os.environ.get("SUDO_USER")
                if not user:
                    print_warning(console, "Could not establish what user to install, skipping")

            console.print(f"[dim]Creating {name}...[/dim]")
            controller.create(
                name,
                user=user if install_user else None,
                bind_home=install_user,
                mirror=mirror,
                autostart=autostart,
                install_packages=packages,
            )
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        print_success(console, f"Created {name}")

    @root.command("destroy")
    def destroy_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container to destroy."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    ) -> None:
        """Destroy a container, stopping it first if necessary."""
        try:
            controller = get_controller(ctx)
            controller.registry.check_valid(name)

            if not confirm_action(f"Are you sure you want to destroy '{name}'?", yes):
                console.print("Aborted")
                raise typer.Exit(1)

            controller.destroy(name)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        print_success(console, f"Destroyed {name}")

    @root.command("start")
    def start_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container to start."),
    ) -> None:
        """Start a stopped container."""
        try:
            result = get_controller(ctx).start(name)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        if result.network_confirmed:
            print_success(console, f"Started {name}")
        else:
            print_warning(console, f"Started {name}, but could not confirm its network is up")

    @root.command("stop")
    def stop_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container to stop."),
    ) -> None:
        """Stop a running container."""
        try:
            result = get_controller(ctx).stop(name)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        suffix = " (forcefully)" if result.forced else ""
        print_success(console, f"Stopped {name}{suffix}")

    @root.command("restart")
    def restart_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container to restart."),
    ) -> None:
        """Restart a container, starting it if it was stopped."""
        try:
            result = get_controller(ctx).restart(name)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        if not result.was_running:
            print_info(console, f"{name} was not running")
        if result.start.network_confirmed:
            print_success(console, f"Restarted {name}")
        else:
            print_warning(console, f"Restarted {name}, but could not confirm its network is up")

    @root.command("enter")
    def enter_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container to enter."),
    ) -> None:
        """Open an interactive shell in the container."""
        try:
            returncode = get_controller(ctx).enter(name)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        if returncode != 0:
            raise typer.Exit(returncode)

    @root.command("exec")
    def exec_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container."),
        command: List[str] = typer.Argument(..., help="Command to run inside the container.", metavar="COMMAND..."),
        tty: bool = typer.Option(False, "--tty", "-t", help="Allocate a terminal for the command."),
    ) -> None:
        """Run a command inside the container."""
        try:
            returncode = get_controller(ctx).exec(name, command, tty=tty)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        if returncode != 0:
            raise typer.Exit(returncode)

    @root.command("console")
    def console_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the container."),
    ) -> None:
        """Attach to the container's console.

        Only one console can be open per container; 'enter' is usually the
        better choice.
        """
        try:
            returncode = get_controller(ctx).console(name)
        except LxcError as exc:
            handle_cli_error(exc, console, verbose=is_verbose(ctx))

        if returncode != 0:
            raise typer.Exit(returncode)
