"""Team commands: members, invitations and roles."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from crewboard.cli import helpers
from crewboard.cli.helpers import console
from crewboard.models import MemberRole
from crewboard.projections import team_presence

app = typer.Typer(help="Team commands")


@app.command("list")
def list_members(
    project_id: Optional[str] = typer.Option(None, "--project", help="Only members of this project"),
) -> None:
    """List people across your projects, online first."""
    members = helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.fetch_members()))
    if project_id:
        members = [m for m in members if m.project_id == project_id]
    if not members:
        console.print("No team members yet.")
        return

    presence = team_presence(members)
    # Per project each membership is listed; across projects each person once.
    roster = members if project_id else presence.members
    table = Table(title=f"Team ({presence.online_count} online)")
    table.add_column("Membership", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Email")
    table.add_column("Role", style="magenta")
    table.add_column("Online")
    for member in roster:
        table.add_row(
            helpers.short_id(member.id),
            member.display_name,
            member.email,
            str(member.role),
            "[green]●[/green]" if member.is_online else "[dim]○[/dim]",
        )
    console.print(table)


@app.command()
def invite(
    email: str = typer.Argument(..., help="Email of an existing user"),
    role: MemberRole = typer.Option(MemberRole.MEMBER, "--role", help="Role in the project"),
    project_id: Optional[str] = typer.Option(
        None, "--project", help="Target project (defaults to your first created project)"
    ),
) -> None:
    """Add an existing user to a project."""
    member = helpers.unwrap_or_exit(
        helpers.run_with_coordinator(lambda c: c.invite_member(email, role, project_id))
    )
    console.print(f"✅ Added {member.display_name} as {member.role}")


@app.command()
def remove(
    membership_id: str = typer.Argument(..., help="Membership id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove a member from a project."""
    if not yes:
        typer.confirm(f"Remove membership {membership_id}?", abort=True)
    helpers.unwrap_or_exit(helpers.run_with_coordinator(lambda c: c.remove_member(membership_id)))
    console.print("✅ Member removed")


@app.command()
def role(
    membership_id: str = typer.Argument(..., help="Membership id"),
    new_role: MemberRole = typer.Argument(..., help="New role"),
) -> None:
    """Change a member's role."""
    membership = helpers.unwrap_or_exit(
        helpers.run_with_coordinator(lambda c: c.update_member_role(membership_id, new_role))
    )
    console.print(f"✅ Role changed to {membership.role}")
