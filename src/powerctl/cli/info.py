from __future__ import annotations

import typer
from rich.console import Console

from powerctl.models import PlatformFamily
from powerctl.storage import ActivityLog

from .common import build_database, load_settings_or_exit, resolve_config_path_or_exit


def register(app: typer.Typer) -> None:
    @app.command()
    def info(
        activity: int = typer.Option(
            5, "--activity", "-a", help="Number of recent activity entries to show"
        ),
    ) -> None:
        """Show powerctl data directory info and recent activity."""
        settings = load_settings_or_exit()
        db = build_database(settings)
        devices = db.list_devices()

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)
        platform = settings.execution.platform or PlatformFamily.detect().value

        console = Console()

        console.print("[bold]powerctl Info[/bold]\n")
        console.print(f"Data directory: {db.path}")
        console.print(f"Device registry: {db.devices_path}")
        console.print(f"Config file: {config_path if config_exists else 'defaults'}")

        console.print("\n[bold]Configuration[/bold]")
        console.print(f"Host platform: {platform}")
        console.print(f"Command timeout: {settings.execution.command_timeout}s")
        console.print(f"Probe timeout: {settings.probing.timeout}s")

        console.print("\n[bold]Statistics[/bold]")
        console.print(f"Devices: {len(devices)}")
        groups = sorted({device.group for device in devices if device.group})
        console.print(f"Groups: {', '.join(groups) if groups else 'none'}")

        entries = ActivityLog(db.activity_path).tail(activity)
        if entries:
            console.print("\n[bold]Recent activity[/bold]")
            for entry in entries:
                console.print(f"{entry['timestamp']}  {entry['event']}")
        else:
            console.print("No activity recorded yet")
