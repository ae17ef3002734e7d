from __future__ import annotations

from importlib.metadata import version

import typer
from rich.console import Console

from .common import build_manager, load_settings_or_exit, resolve_config_path_or_exit


def register(app: typer.Typer) -> None:
    @app.command()
    def info() -> None:
        """Show devhub data directory, settings and stats."""
        settings = load_settings_or_exit()
        manager = build_manager(settings)
        db = manager.database

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)

        console = Console()

        console.print("[bold]devhub Info[/bold]\n")
        console.print(f"Version: {version('devhub')}")
        console.print(f"Data directory: {db.path}")
        console.print(f"Device registry: {db.devices_path}")
        console.print(f"Software connections: {db.endpoints_path}")
        console.print(f"Config file: {config_path if config_exists else 'defaults'}")

        console.print("\n[bold]Application[/bold]")
        console.print(f"Autostart: {'on' if settings.app.autostart else 'off'}")
        console.print(f"Theme: {settings.app.theme.value}")
        console.print(f"Log capacity: {settings.status.log_capacity}")

        console.print("\n[bold]Statistics[/bold]")
        console.print(f"Devices: {len(manager.devices)}")
        console.print(f"Software connections: {len(manager.endpoints)}")
        console.print(f"Log entries: {len(manager.stream)}")
