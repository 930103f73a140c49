"""Activity feed commands."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from crewboard.cli import helpers
from crewboard.cli.helpers import console
from crewboard.models import ActivityDraft, utc_now
from crewboard.projections import project_feed

app = typer.Typer(help="Activity feed commands")


@app.command()
def feed(
    project_id: Optional[str] = typer.Option(None, "--project", help="Only activity for this project"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of entries"),
) -> None:
    """Show recent activity, newest first."""
    entries = helpers.unwrap_or_exit(
        helpers.run_with_coordinator(lambda c: c.fetch_activities(project_id, limit))
    )
    if not entries:
        console.print("No activity yet.")
        return

    table = Table(title="Recent Activity")
    table.add_column("When", style="dim")
    table.add_column("Kind")
    table.add_column("What")
    for item in project_feed(entries, utc_now()):
        color = item.category.color
        table.add_row(item.when, f"[{color}]{item.category.key}[/{color}]", item.entry.description)
    console.print(table)


@app.command()
def log(
    action: str = typer.Argument(..., help="Action tag, e.g. commented"),
    description: str = typer.Argument(..., help="What happened"),
    project_id: Optional[str] = typer.Option(None, "--project", help="Project the entry belongs to"),
    task_id: Optional[str] = typer.Option(None, "--task", help="Task the entry belongs to"),
) -> None:
    """Append an entry to the activity log."""
    draft = ActivityDraft(action=action, description=description, project_id=project_id, task_id=task_id)
    entry = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.log_activity(draft)))
    console.print(f"✅ Logged {entry.action}")
