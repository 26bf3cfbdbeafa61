from __future__ import annotations

import asyncio
import contextlib
import sys
import threading
from datetime import datetime, timezone
from typing import TextIO

import typer
from rich.console import Console
from rich.table import Table

from powerctl.errors import PowerCtlError
from powerctl.models import ScheduleEntry
from powerctl.services import PowerController

from .common import build_controller, build_database, exit_with_error, load_settings_or_exit


def _remaining(entry: ScheduleEntry) -> str:
    seconds = max(int((entry.expires_at - datetime.now(timezone.utc)).total_seconds()), 0)
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m {seconds:02d}s"


def _schedule_table(entries: list[ScheduleEntry]) -> Table:
    table = Table()
    table.add_column("Device", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Action", style="yellow")
    table.add_column("Fires at")
    table.add_column("Remaining")

    for entry in entries:
        table.add_row(
            str(entry.device_id),
            entry.name,
            entry.action.value,
            entry.expires_at.astimezone().strftime("%H:%M:%S"),
            _remaining(entry),
        )
    return table


async def _hold(
    controller: PowerController, device_id: int, action: str, minutes: float, console: Console
) -> None:
    message = controller.schedule(device_id, action, minutes)
    console.print(f"[green]✓[/green] {message}")
    console.print(_schedule_table(controller.list_schedules()))
    console.print("Keep this running until it fires. Press Ctrl+C to cancel.\n")

    try:
        while controller.scheduler.get(device_id) is not None:
            await asyncio.sleep(1)
    except asyncio.CancelledError:
        if controller.scheduler.get(device_id) is not None:
            console.print(controller.cancel_schedule(device_id))
        raise
    finally:
        await controller.aclose()


def schedule(
    device_id: int = typer.Argument(..., help="Registered device id"),
    action: str = typer.Argument(..., help="shutdown, restart, abort or wake"),
    minutes: float = typer.Argument(..., help="Delay in minutes"),
) -> None:
    """Run an action on a device after a delay.

    Pending actions live in this process only; exiting cancels them.
    """
    console = Console()
    settings = load_settings_or_exit()
    controller = build_controller(settings, build_database(settings))

    try:
        asyncio.run(_hold(controller, device_id, action, minutes, console))
    except PowerCtlError as exc:
        exit_with_error(exc)
    except KeyboardInterrupt:
        console.print("\n[yellow]![/yellow] Schedule cancelled.")
        raise typer.Exit(1) from None

    console.print("[green]✓[/green] Scheduled action fired. See 'powerctl info' for the outcome.")


SESSION_HELP = "schedule DEVICE_ID ACTION MINUTES | list | cancel DEVICE_ID | quit"


def _feed_lines(
    stream: TextIO, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[str | None]
) -> None:
    # The loop or the stream may already be closed once the session has ended.
    with contextlib.suppress(RuntimeError, ValueError):
        for line in stream:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, None)


def _handle(controller: PowerController, words: list[str], console: Console) -> None:
    command, args = words[0].lower(), words[1:]
    if command == "schedule" and len(args) == 3:
        message = controller.schedule(int(args[0]), args[1], args[2])
        console.print(f"[green]✓[/green] {message}")
    elif command == "list" and not args:
        entries = controller.list_schedules()
        if entries:
            console.print(_schedule_table(entries))
        else:
            console.print("No pending actions.")
    elif command == "cancel" and len(args) == 1:
        console.print(f"[green]✓[/green] {controller.cancel_schedule(int(args[0]))}")
    else:
        console.print(f"[yellow]?[/yellow] {SESSION_HELP}")


async def _session(
    controller: PowerController, stream: TextIO, console: Console, wait: bool
) -> None:
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    threading.Thread(
        target=_feed_lines,
        args=(stream, asyncio.get_running_loop(), queue),
        daemon=True,
    ).start()

    try:
        while (line := await queue.get()) is not None:
            words = line.split()
            if not words:
                continue
            if words[0].lower() in ("quit", "exit"):
                wait = False
                break
            try:
                _handle(controller, words, console)
            except ValueError:
                console.print(f"[red]✗[/red] Device ids are numbers: {line.strip()}")
            except PowerCtlError as exc:
                console.print(f"[red]✗[/red] {exc.kind.value}: {exc}")

        while wait and controller.list_schedules():
            await asyncio.sleep(1)
    finally:
        dropped = len(controller.list_schedules())
        await controller.aclose()
        if dropped:
            console.print(f"[yellow]![/yellow] Dropped {dropped} pending action(s).")


def serve(
    wait: bool = typer.Option(
        False, "--wait", help="After input ends, stay up until every pending action fired"
    ),
) -> None:
    """Keep a scheduling session open and read requests from stdin.

    One request per line: schedule DEVICE_ID ACTION MINUTES, list,
    cancel DEVICE_ID or quit. Pending actions are dropped when the session
    ends.
    """
    console = Console()
    settings = load_settings_or_exit()
    controller = build_controller(settings, build_database(settings))
    console.print(f"Session open. {SESSION_HELP}")

    try:
        asyncio.run(_session(controller, sys.stdin, console, wait))
    except KeyboardInterrupt:
        console.print("\n[yellow]![/yellow] Session closed.")
        raise typer.Exit(1) from None


def register(app: typer.Typer) -> None:
    app.command()(schedule)
    app.command()(serve)
