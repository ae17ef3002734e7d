from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from devhub.core import Manager
from devhub.models import Device

from .common import build_manager, exit_on_error, run

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Inspect and configure paired devices")


def _battery(device: Device) -> str:
    if device.battery_percent is None:
        return "mains"
    return f"{device.battery_percent}%"


@app.command("list")
def list_devices() -> None:
    """List paired devices."""
    manager = build_manager()
    devices = manager.devices.list_devices()

    console = Console()
    if not devices:
        console.print("No devices paired.")
        console.print("Use 'devhub devices discover' to pair attached devices.")
        return

    table = Table()
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="green")
    table.add_column("Type")
    table.add_column("Firmware")
    table.add_column("Battery", justify="right")

    for device in devices:
        table.add_row(
            str(device.id),
            device.name,
            device.type,
            device.firmware_version,
            _battery(device),
        )

    console.print(table)


@app.command("show")
def show_device(device_id: int = typer.Argument(..., help="Device id")) -> None:
    """Show details of one device."""
    manager = build_manager()
    device = manager.devices.select_device(device_id)

    console = Console()
    if device is None:
        console.print("Select a device: no device with that id.")
        raise typer.Exit(1)

    console.print(f"[bold]{device.name}[/bold]")
    console.print(f"Device type: {device.type}")
    console.print(f"Firmware: {device.firmware_version or 'unknown'}")
    console.print(f"Battery: {_battery(device)}")


@app.command("discover")
def discover_devices() -> None:
    """Pair every device the driver currently reports."""
    manager = build_manager()
    console = Console()
    console.print("Discovering devices...")

    with exit_on_error():
        found = run(manager.devices.discover())
    manager.save()

    console.print(f"[green]Found {len(found)} device(s)[/green]")


@app.command("rename")
def rename_device(
    device_id: int = typer.Argument(..., help="Device id"),
    name: str = typer.Argument(..., help="New display name"),
) -> None:
    """Rename a device."""
    manager = build_manager()
    with exit_on_error():
        device = manager.devices.rename(device_id, name)
    manager.save()

    Console().print(f"[green]✓[/green] Renamed device {device.id} to '{device.name}'")


@app.command("remove")
def remove_device(device_id: int = typer.Argument(..., help="Device id")) -> None:
    """Unregister a device. Pairing it again requires initial setup."""
    manager = build_manager()
    with exit_on_error():
        device = manager.devices.get_device(device_id)
        manager.devices.unregister_device(device_id)
    manager.save()

    Console().print(f"[green]✓[/green] Unregistered device '{device.name}'")


@app.command("calibrate")
def calibrate_device(device_id: int = typer.Argument(..., help="Device id")) -> None:
    """Run calibration on a device."""
    manager = build_manager()
    with exit_on_error():
        run(_with_refresh(manager, manager.devices.calibrate, device_id))
    manager.save()

    Console().print(f"[green]✓[/green] Device {device_id} calibrated")


@app.command("backup")
def backup_device(device_id: int = typer.Argument(..., help="Device id")) -> None:
    """Back up a device's settings to the data directory."""
    manager = build_manager()
    with exit_on_error():
        backup = run(_with_refresh(manager, manager.devices.backup, device_id))
    path = manager.database.save_backup(backup)
    manager.save()

    Console().print(f"[green]✓[/green] Saved backup to {path}")


@app.command("restore")
def restore_device(device_id: int = typer.Argument(..., help="Device id")) -> None:
    """Restore a device's settings from its last backup."""
    manager = build_manager()
    try:
        backup = manager.database.load_backup(device_id)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
    console = Console()
    if backup is None:
        console.print(f"[yellow]![/yellow] No backup found for device {device_id}")
        raise typer.Exit(1)

    with exit_on_error():
        run(_with_refresh(manager, manager.devices.restore, device_id, backup))
    manager.save()

    console.print(f"[green]✓[/green] Restored settings of device {device_id}")


async def _with_refresh(
    manager: Manager, command: Callable[..., Awaitable[T]], *args: Any
) -> T:
    # devices load offline; refresh presence before issuing a command
    await manager.devices.refresh()
    return await command(*args)
