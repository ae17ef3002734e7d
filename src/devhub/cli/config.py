from __future__ import annotations

import typer
from rich.console import Console

from devhub.config import (
    Settings,
    Theme,
    render_settings_toml,
    update_app_settings,
    write_settings,
)

from .common import load_settings_or_exit, resolve_config_path_or_exit

app = typer.Typer(no_args_is_help=True, help="Application settings")


def _store(settings: Settings) -> None:
    path, _exists = resolve_config_path_or_exit(allow_missing=True)
    write_settings(settings, path)


@app.command("show")
def show_config() -> None:
    """Show current configuration."""
    settings = load_settings_or_exit()
    path, exists = resolve_config_path_or_exit(allow_missing=True)

    source = str(path) if exists else "defaults"
    typer.echo(f"Config source: {source}")
    typer.echo(render_settings_toml(settings))


@app.command("autostart")
def set_autostart(
    enabled: bool = typer.Option(True, "--on/--off", help="Start with the system"),
) -> None:
    """Turn starting the app on login on or off."""
    settings = update_app_settings(load_settings_or_exit(), autostart=enabled)
    _store(settings)

    state = "enabled" if settings.app.autostart else "disabled"
    Console().print(f"[green]✓[/green] Autostart {state}")


@app.command("theme")
def set_theme(
    theme: Theme = typer.Argument(..., help="Color theme"),
) -> None:
    """Select the light, dark or system theme."""
    settings = update_app_settings(load_settings_or_exit(), theme=theme)
    _store(settings)

    Console().print(f"[green]✓[/green] Theme set to {settings.app.theme.value}")
