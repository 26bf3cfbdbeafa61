from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from powerctl.utils.redaction import Redactor

from .common import build_database, load_settings_or_exit

app = typer.Typer(no_args_is_help=True, help="Manage the device registry")


@app.command("list")
def list_devices(
    redact: bool = typer.Option(
        False,
        "--redact",
        help="Redact IP and MAC addresses in output",
    ),
) -> None:
    """List registered devices."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    devices = db.list_devices()

    console = Console()

    if not devices:
        console.print("No devices registered.")
        console.print(f"Use 'powerctl devices add' or edit {db.devices_path}")
        return

    redactor = Redactor(enabled=redact)
    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("IP")
    table.add_column("MAC Address")
    table.add_column("Group", style="yellow")
    table.add_column("Credentials")

    for device in devices:
        table.add_row(
            str(device.id),
            device.name,
            redactor.redact_ip(device.ip),
            redactor.redact_mac(device.mac),
            device.group,
            device.username if device.credentials else "",
        )

    console.print(table)


@app.command("add")
def add_device(
    name: str = typer.Argument(..., help="Display name"),
    ip: str = typer.Argument(..., help="IP address or hostname"),
    mac: str = typer.Option("", "--mac", help="MAC address for wake-on-LAN"),
    group: str = typer.Option("", "--group", "-g", help="Group name"),
    device_type: str = typer.Option("desktop", "--type", help="Device type"),
    username: str | None = typer.Option(
        None, "--user", "-u", help="Remote login user"
    ),
    secret: str | None = typer.Option(
        None, "--secret", help="Remote login password", hide_input=True
    ),
) -> None:
    """Register a device."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    device = db.add_device(
        name,
        ip,
        mac=mac,
        group=group,
        type=device_type,
        username=username,
        secret=secret,
    )

    console = Console()
    console.print(f"[green]✓[/green] Added '{device.name}' ({device.ip}) as #{device.id}")


@app.command("remove")
def remove_device(device_id: int = typer.Argument(..., help="Device id")) -> None:
    """Remove a device."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    console = Console()
    if db.remove_device(device_id):
        console.print(f"[green]✓[/green] Removed device #{device_id}")
    else:
        console.print(f"[yellow]![/yellow] Device #{device_id} not found")
        raise typer.Exit(1)
