"""``crewboard config`` commands."""

from __future__ import annotations

import typer
from rich.table import Table

from crewboard.cli.helpers import console
from crewboard.config import CrewboardConfig

app = typer.Typer(help="Configuration commands")


@app.command()
def show() -> None:
    """Display the resolved configuration."""
    table = Table(title="Crewboard Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="bold")
    for key, value in CrewboardConfig().as_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("set-url")
def set_url(url: str = typer.Argument(..., help="Remote store base URL")) -> None:
    """Set the remote store URL."""
    if not url.startswith(("http://", "https://")):
        typer.secho("URL must start with http:// or https://", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    CrewboardConfig().set_server_url(url)
    console.print(f"✅ Server URL set to {url.rstrip('/')}")


@app.command("set-key")
def set_key(api_key: str = typer.Argument(..., help="Public API key")) -> None:
    """Set the public API key sent with every request."""
    CrewboardConfig().set_api_key(api_key)
    console.print("✅ API key saved")
