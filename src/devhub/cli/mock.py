from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from devhub.core import run_mock_endpoint


def register(app: typer.Typer) -> None:
    @app.command()
    def mock(
        name: str = typer.Option("mock-software", "--name", "-n", help="Label"),
        host: str = typer.Option("127.0.0.1", "--host", help="Address to bind"),
        port: int = typer.Option(4455, "--port", "-p", help="Port to listen on"),
    ) -> None:
        """Run a mock software endpoint for development."""
        console = Console()
        console.print(f"Starting mock software '{name}' on {host}:{port}...")
        console.print("Press Ctrl+C to stop.\n")

        try:
            asyncio.run(run_mock_endpoint(name=name, host=host, port=port))
        except KeyboardInterrupt:
            console.print("\n[green]Mock software stopped.[/green]")
