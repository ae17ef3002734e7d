from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console

from devhub.config import (
    Settings,
    data_dir_from_settings,
    get_settings,
    resolve_config_path,
)
from devhub.core import Manager, MockDeviceDriver
from devhub.exceptions import DevhubError
from devhub.models import LogLevel
from devhub.storage import Database

T = TypeVar("T")

LEVEL_STYLES = {
    LogLevel.INFO: "white",
    LogLevel.SUCCESS: "green",
    LogLevel.WARN: "yellow",
    LogLevel.ERROR: "red",
}

err_console = Console(stderr=True)


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


def build_manager(settings: Settings | None = None) -> Manager:
    settings = settings or load_settings_or_exit()
    manager = Manager(
        settings, database=build_database(settings), driver=MockDeviceDriver()
    )
    try:
        manager.load()
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
    return manager


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Report devhub errors on stderr and exit with status 1."""
    try:
        yield
    except DevhubError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from exc


def run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)
