"""Command line interface for crewboard."""

from __future__ import annotations

import typer

from crewboard.cli.commands import activity, auth, config_cmd, projects, tasks, team
from crewboard.cli.helpers import configure_logging

app = typer.Typer(
    name="crewboard",
    help="Team task boards, projects and activity from the terminal",
    add_completion=False,
    no_args_is_help=True,
)
app.add_typer(auth.app, name="auth")
app.add_typer(projects.app, name="projects")
app.add_typer(tasks.app, name="tasks")
app.add_typer(team.app, name="team")
app.add_typer(activity.app, name="activity")
app.add_typer(config_cmd.app, name="config")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Crewboard command line."""
    configure_logging(verbose)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
