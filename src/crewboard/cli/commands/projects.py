"""Project commands: list, create, update, delete, join and join codes."""

from __future__ import annotations

from typing import Any, Optional

import typer
from rich.table import Table

from crewboard.cli import helpers
from crewboard.cli.helpers import console
from crewboard.coordinator import ProjectListState
from crewboard.models import JoinCode, ProjectStatus, ProjectType

app = typer.Typer(help="Project commands")


def _print_code(code: JoinCode) -> None:
    console.print(f"🔑 Team code: [bold cyan]{code.code}[/bold cyan]")
    console.print(f"   Expires {code.expires_at:%Y-%m-%d %H:%M} UTC. Share it with your teammates.")


@app.command("list")
def list_projects() -> None:
    """List projects you created or are a member of."""
    listing = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.fetch_projects()))

    if listing.state == ProjectListState.EMPTY:
        console.print("No projects yet.")
        console.print("   Create one with 'crewboard projects create NAME'")
        console.print("   or join a team with 'crewboard projects join CODE'.")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Created")
    for project in listing.projects:
        table.add_row(
            helpers.short_id(project.id),
            project.name,
            str(project.project_type),
            str(project.status),
            f"{project.created_at:%Y-%m-%d}",
        )
    console.print(table)


@app.command()
def create(
    name: str = typer.Argument(..., help="Project name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Project description"),
    team: bool = typer.Option(False, "--team", help="Create a team project with a shareable join code"),
    color: Optional[str] = typer.Option(None, "--color", help="Hex color, e.g. #3B82F6"),
) -> None:
    """Create a project. You become its lead."""
    data: dict[str, Any] = {
        "name": name,
        "description": description,
        "project_type": ProjectType.TEAM if team else ProjectType.INDIVIDUAL,
    }
    if color:
        data["color"] = color

    created = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.create_project(data)))
    console.print(f"✅ Created project [bold]{created.project.name}[/bold] ({created.project.id})")
    if created.join_code is not None:
        _print_code(created.join_code)
    elif created.code_error is not None:
        console.print(f"[yellow]⚠️  Could not create a team code: {created.code_error}[/yellow]")
        console.print(f"   Run 'crewboard projects regenerate-code {created.project.id}' to try again.")


@app.command()
def update(
    project_id: str = typer.Argument(..., help="Project id"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    status: Optional[ProjectStatus] = typer.Option(None, "--status", help="New status"),
    color: Optional[str] = typer.Option(None, "--color", help="New hex color"),
) -> None:
    """Update a project's details."""
    patch = {
        key: value
        for key, value in {"name": name, "description": description, "status": status, "color": color}.items()
        if value is not None
    }
    project = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.update_project(project_id, patch)))
    console.print(f"✅ Updated project [bold]{project.name}[/bold]")


@app.command()
def delete(
    project_id: str = typer.Argument(..., help="Project id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a project together with its tasks and memberships."""
    if not yes:
        typer.confirm(f"Delete project {project_id} and all of its tasks?", abort=True)
    helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.delete_project(project_id)))
    console.print("✅ Project deleted")


@app.command()
def join(code: str = typer.Argument(..., help="Team code, e.g. CT-7F3K")) -> None:
    """Join a team project with a code."""
    redemption = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.join_project(code)))
    console.print(f"🎉 Joined [bold]{redemption.project.name}[/bold] as {redemption.membership.role}")


@app.command()
def code(project_id: str = typer.Argument(..., help="Project id")) -> None:
    """Show the project's active team code."""
    active = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.get_join_code(project_id)))
    if active is None:
        console.print("No active team code.")
        console.print(f"   Run 'crewboard projects regenerate-code {project_id}' to create one.")
        return
    _print_code(active)


@app.command("regenerate-code")
def regenerate_code(project_id: str = typer.Argument(..., help="Project id")) -> None:
    """Replace the project's team code. The old code stops working."""
    minted = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.regenerate_join_code(project_id)))
    _print_code(minted)
