from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from devhub.core import Manager
from devhub.models import ProbeResult, SoftwareEndpoint

from .common import build_manager, exit_on_error, run

app = typer.Typer(no_args_is_help=True, help="Manage connections to local software")

STATE_MARKERS = {
    "connected": "[green]●[/green] connected",
    "connecting": "[yellow]●[/yellow] connecting",
    "disconnected": "[dim]●[/dim] disconnected",
}


def _print_probe(console: Console, label: str, result: ProbeResult) -> None:
    if result.reachable:
        console.print(
            f"[green]✓[/green] {label} reachable ({result.latency_ms:.1f} ms)"
        )
    else:
        reason = escape(result.error or "")
        console.print(f"[red]✗[/red] {label} unreachable: {reason}")


@app.command("list")
def list_endpoints() -> None:
    """List configured software connections."""
    manager = build_manager()
    endpoints = manager.endpoints.list_endpoints()

    console = Console()
    if not endpoints:
        console.print("No software connections configured.")
        console.print("Use 'devhub software add' to create one.")
        return

    table = Table()
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Software", style="green")
    table.add_column("Address")
    table.add_column("Status")

    for endpoint in endpoints:
        table.add_row(
            str(endpoint.id),
            endpoint.name,
            endpoint.address,
            STATE_MARKERS[endpoint.state.value],
        )

    console.print(table)


@app.command("add")
def add_endpoint(
    name: str = typer.Argument(..., help="Software name, e.g. 'OBS Studio'"),
    host: str = typer.Argument(..., help="Host name or IP address"),
    port: str = typer.Argument(..., help="TCP port"),
    test: bool = typer.Option(False, "--test", help="Probe the address first"),
) -> None:
    """Add a new software connection."""
    manager = build_manager()
    console = Console()

    with exit_on_error():
        if test:
            result = run(manager.endpoints.test_connection(host, port, name))
            _print_probe(console, name, result)
            if not result.reachable:
                manager.save()
                raise typer.Exit(1)
        endpoint = manager.endpoints.add_endpoint(name, host, port)
    manager.save()

    console.print(
        f"[green]✓[/green] Added '{endpoint.name}' at {endpoint.address} "
        f"(id {endpoint.id})"
    )


@app.command("test")
def test_endpoint(
    host: str = typer.Argument(..., help="Host name or IP address"),
    port: str = typer.Argument(..., help="TCP port"),
    name: str | None = typer.Option(None, "--name", help="Label for the log"),
) -> None:
    """Test whether software is listening at an address."""
    manager = build_manager()
    console = Console()

    with exit_on_error():
        result = run(manager.endpoints.test_connection(host, port, name))
    manager.save()

    _print_probe(console, name or f"{host}:{port}", result)
    if not result.reachable:
        raise typer.Exit(1)


async def _connect(manager: Manager, endpoint_id: int, hold: bool) -> SoftwareEndpoint:
    try:
        endpoint = await manager.endpoints.request_connect(endpoint_id)
        if hold and endpoint.connected:
            Console().print("Holding connection open. Press Ctrl+C to disconnect.")
            await asyncio.Event().wait()
        return endpoint
    finally:
        await manager.close()


@app.command("connect")
def connect_endpoint(
    endpoint_id: int = typer.Argument(..., help="Connection id"),
    hold: bool = typer.Option(False, "--hold", help="Keep the connection open"),
) -> None:
    """Connect to configured software."""
    manager = build_manager()
    console = Console()

    with exit_on_error():
        try:
            endpoint = run(_connect(manager, endpoint_id, hold))
        except KeyboardInterrupt:
            console.print("\n[green]Disconnected.[/green]")
            return
    manager.save()

    if endpoint.connected:
        console.print(f"[green]✓[/green] Connected to '{endpoint.name}'")
    else:
        reason = escape(endpoint.last_error or "")
        console.print(f"[red]✗[/red] Could not connect to '{endpoint.name}': {reason}")
        raise typer.Exit(1)


@app.command("disconnect")
def disconnect_endpoint(
    endpoint_id: int = typer.Argument(..., help="Connection id"),
) -> None:
    """Disconnect from software."""
    manager = build_manager()
    with exit_on_error():
        endpoint = run(manager.endpoints.request_disconnect(endpoint_id))
    manager.save()

    Console().print(f"[green]✓[/green] '{endpoint.name}' is disconnected")


@app.command("remove")
def remove_endpoint(
    endpoint_id: int = typer.Argument(..., help="Connection id"),
) -> None:
    """Remove a software connection."""
    manager = build_manager()
    with exit_on_error():
        endpoint = manager.endpoints.get_endpoint(endpoint_id)
        run(manager.endpoints.remove_endpoint(endpoint_id))
    manager.save()

    Console().print(f"[green]✓[/green] Removed '{endpoint.name}'")
