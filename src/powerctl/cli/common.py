from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from powerctl.config import (
    Settings,
    data_dir_from_settings,
    get_settings,
    resolve_config_path,
)
from powerctl.errors import PowerCtlError
from powerctl.services import PowerController
from powerctl.storage import ActivityLog, Database


def load_settings_or_exit() -> Settings:
    try:
        return get_settings()
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def resolve_config_path_or_exit(allow_missing: bool = False) -> tuple[Path, bool]:
    try:
        return resolve_config_path(allow_missing=allow_missing)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def build_database(settings: Settings, data_dir: Path | None = None) -> Database:
    path = data_dir or data_dir_from_settings(settings)
    return Database(path)


def build_controller(settings: Settings, db: Database) -> PowerController:
    return PowerController.from_settings(
        settings, db, sink=ActivityLog(db.activity_path)
    )


def exit_with_error(exc: PowerCtlError | ValueError) -> NoReturn:
    console = Console(stderr=True)
    if isinstance(exc, PowerCtlError):
        console.print(f"[red]✗ {exc.kind.value}:[/red] {exc.message}")
        if exc.details:
            console.print(f"  [dim]{exc.details}[/dim]")
    else:
        console.print(f"[red]✗[/red] {exc}")
    raise typer.Exit(1) from exc
