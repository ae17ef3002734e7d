from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .common import LEVEL_STYLES, build_manager


def register(app: typer.Typer) -> None:
    @app.command()
    def status(
        lines: int = typer.Option(20, "--lines", "-n", help="Log entries to show"),
        metrics: bool = typer.Option(
            True, "--metrics/--no-metrics", help="Sample CPU, memory and data rate"
        ),
    ) -> None:
        """Show resource usage and the most recent status log."""
        manager = build_manager()
        console = Console()

        console.print("[bold]Status[/bold]\n")
        if metrics:
            snapshot = manager.sampler.sample(interval=0.2)
            console.print(f"CPU usage: {snapshot.cpu_percent:.0f}%")
            console.print(f"Memory usage: {snapshot.memory_mb:.0f} MB")
            console.print(f"Data rate: {snapshot.data_rate_kbps:.0f} Kbps")
            console.print()

        entries = manager.stream.tail(lines)
        if not entries:
            console.print("No log entries yet.")
            return

        table = Table(title="Live log", show_header=False, box=None)
        table.add_column("Time", style="dim")
        table.add_column("Level")
        table.add_column("Message")
        for entry in entries:
            style = LEVEL_STYLES[entry.level]
            table.add_row(
                entry.timestamp.astimezone().strftime("%H:%M:%S"),
                Text(f"[{entry.level.value}]", style=style),
                Text(entry.message),
            )
        console.print(table)
