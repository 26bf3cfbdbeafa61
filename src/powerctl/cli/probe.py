from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.table import Table

from powerctl.core import ReachabilityTracker
from powerctl.core.dispatcher import record_safely
from powerctl.models import Device, ProbeResult
from powerctl.services import PowerController

from .common import build_controller, build_database, load_settings_or_exit

logger = logging.getLogger(__name__)


def _status_table(devices: dict[int, Device], results: list[ProbeResult]) -> Table:
    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("IP")
    table.add_column("Status")

    for result in results:
        device = devices[result.id]
        status = "[green]online[/green]" if result.is_online else "[red]offline[/red]"
        table.add_row(str(device.id), device.name, device.ip, status)
    return table


async def _watch(
    controller: PowerController,
    devices: dict[int, Device],
    interval: float,
    console: Console,
) -> None:
    tracker = ReachabilityTracker()
    while True:
        results = await controller.probe()
        for transition in tracker.update(results):
            device = devices.get(transition.id)
            name = device.name if device else f"#{transition.id}"
            state = "online" if transition.is_online else "offline"
            console.print(f"{name} is now {state}")
            logger.info("%s went %s", name, state)
            record_safely(controller.sink, f"{name} went {state}")
        await asyncio.sleep(interval)


def probe(
    watch: bool = typer.Option(
        False, "--watch", "-w", help="Keep polling and report status changes"
    ),
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Seconds between polls (with --watch)"
    ),
) -> None:
    """Check which registered devices answer a ping."""
    console = Console()
    settings = load_settings_or_exit()
    db = build_database(settings)
    controller = build_controller(settings, db)
    devices = {device.id: device for device in db.list_devices()}

    if not devices:
        console.print("No devices registered.")
        return

    results = asyncio.run(controller.probe())
    console.print(_status_table(devices, results))
    online = sum(1 for result in results if result.is_online)
    console.print(f"\n[green]{online}[/green]/{len(results)} device(s) online")

    if not watch:
        return

    poll_interval = interval or settings.probing.interval
    console.print(f"\nWatching every {poll_interval:g}s. Press Ctrl+C to stop.\n")
    try:
        asyncio.run(_watch(controller, devices, poll_interval, console))
    except KeyboardInterrupt:
        console.print("\n[green]Stopped.[/green]")


def register(app: typer.Typer) -> None:
    app.command()(probe)
