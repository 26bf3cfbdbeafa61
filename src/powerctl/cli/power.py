from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from powerctl.errors import PowerCtlError

from .common import build_controller, build_database, exit_with_error, load_settings_or_exit


def power(
    action: str = typer.Argument(..., help="shutdown, restart, abort or wake"),
    device_id: int | None = typer.Option(
        None, "--device", "-d", help="Registered device id"
    ),
    ip: str | None = typer.Option(
        None, "--ip", help="Target address (defaults to this machine)"
    ),
) -> None:
    """Send a power action to one machine and wait for the result."""
    console = Console()
    settings = load_settings_or_exit()
    controller = build_controller(settings, build_database(settings))

    async def _run() -> str:
        try:
            return await controller.resolve_and_execute(action, device_id=device_id, ip=ip)
        finally:
            await controller.aclose()

    try:
        message = asyncio.run(_run())
    except PowerCtlError as exc:
        exit_with_error(exc)

    console.print(f"[green]✓[/green] {message}")


def wake(mac: str = typer.Argument(..., help="MAC address of the machine")) -> None:
    """Send a wake-on-LAN magic packet."""
    console = Console()
    settings = load_settings_or_exit()
    controller = build_controller(settings, build_database(settings))

    try:
        message = asyncio.run(controller.wake(mac))
    except PowerCtlError as exc:
        exit_with_error(exc)

    console.print(f"[green]✓[/green] {message}")


def group(
    name: str = typer.Argument(..., help="Group name"),
    action: str = typer.Argument(..., help="shutdown, restart, abort or wake"),
) -> None:
    """Send one action to every device of a group.

    Per-device results go to the log and the activity log.
    """
    console = Console()
    settings = load_settings_or_exit()
    controller = build_controller(settings, build_database(settings))

    async def _run() -> str:
        try:
            message = controller.group_action(name, action)
            console.print(f"[green]✓[/green] {message}")
            return message
        finally:
            # The process would exit under the queued commands otherwise.
            await controller.aclose()

    try:
        asyncio.run(_run())
    except PowerCtlError as exc:
        exit_with_error(exc)


def register(app: typer.Typer) -> None:
    app.command()(power)
    app.command()(wake)
    app.command()(group)
