"""Task board commands."""

from __future__ import annotations

from itertools import zip_longest
from typing import Any, Optional

import typer
from rich.table import Table

from crewboard.cli import helpers
from crewboard.cli.helpers import console
from crewboard.models import Task, TaskPriority, TaskStatus
from crewboard.projections import board_counts, completion_rate, group_board

app = typer.Typer(help="Task commands")

_COLUMN_TITLES = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.REVIEW: "Review",
    TaskStatus.COMPLETED: "Completed",
}

_PRIORITY_STYLES = {
    TaskPriority.LOW: "dim",
    TaskPriority.MEDIUM: "white",
    TaskPriority.HIGH: "yellow",
    TaskPriority.URGENT: "bold red",
}


def _card(task: Task | None) -> str:
    if task is None:
        return ""
    style = _PRIORITY_STYLES.get(task.priority, "white")
    return f"[{style}]{task.title}[/{style}]\n[dim]{helpers.short_id(task.id)}[/dim]"


@app.command()
def board(
    project_id: str = typer.Argument(..., help="Project id"),
    priority: Optional[TaskPriority] = typer.Option(None, "--priority", help="Only show this priority"),
    assignee: Optional[str] = typer.Option(
        None, "--assignee", help="Only show tasks assigned to this user id ('unassigned' for none)"
    ),
) -> None:
    """Show the project's task board."""
    tasks = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.fetch_tasks(project_id)))
    columns = group_board(tasks, priority=priority, assignee=assignee)
    counts = board_counts(tasks)

    table = Table(title="Task Board", show_lines=True)
    for status in TaskStatus:
        table.add_column(f"{_COLUMN_TITLES[status]} ({counts[status]})")
    for row in zip_longest(*columns.values()):
        table.add_row(*(_card(task) for task in row))
    console.print(table)
    console.print(f"Completion: {completion_rate(tasks):.0%}")


@app.command()
def create(
    project_id: str = typer.Argument(..., help="Project id"),
    title: str = typer.Argument(..., help="Task title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Task description"),
    priority: TaskPriority = typer.Option(TaskPriority.MEDIUM, "--priority", help="Task priority"),
    status: TaskStatus = typer.Option(TaskStatus.TODO, "--status", help="Initial column"),
    assign: Optional[str] = typer.Option(None, "--assign", help="Assignee user id"),
) -> None:
    """Create a task at the end of the board."""
    data: dict[str, Any] = {
        "project_id": project_id,
        "title": title,
        "description": description,
        "priority": priority,
        "status": status,
        "assigned_to": assign,
    }
    task = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.create_task(data)))
    console.print(f"✅ Created task [bold]{task.title}[/bold] ({task.id})")


@app.command()
def update(
    task_id: str = typer.Argument(..., help="Task id"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    priority: Optional[TaskPriority] = typer.Option(None, "--priority", help="New priority"),
    assign: Optional[str] = typer.Option(None, "--assign", help="New assignee user id"),
) -> None:
    """Edit a task's details."""
    patch = {
        key: value
        for key, value in {
            "title": title,
            "description": description,
            "priority": priority,
            "assigned_to": assign,
        }.items()
        if value is not None
    }
    task = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.update_task(task_id, patch)))
    console.print(f"✅ Updated task [bold]{task.title}[/bold]")


@app.command()
def move(
    task_id: str = typer.Argument(..., help="Task id"),
    status: TaskStatus = typer.Argument(..., help="Destination column"),
) -> None:
    """Move a task to another column."""
    task = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.move_task(task_id, status)))
    console.print(f"✅ Moved [bold]{task.title}[/bold] to {_COLUMN_TITLES[task.status]}")


@app.command()
def delete(
    task_id: str = typer.Argument(..., help="Task id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a task you created."""
    if not yes:
        typer.confirm(f"Delete task {task_id}?", abort=True)
    helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.delete_task(task_id)))
    console.print("✅ Task deleted")
