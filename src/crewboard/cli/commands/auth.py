"""Session commands.

Signing in happens with the identity provider; ``auth use`` stores the
resulting user id and access token for later commands.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import typer

from crewboard.cli.helpers import console
from crewboard.models import parse_timestamp, utc_now
from crewboard.session import Session, SessionStore

app = typer.Typer(help="Session commands")


def _format_remaining(delta: timedelta) -> str:
    total_seconds = int(delta.total_seconds())
    if total_seconds < 3600:
        return f"{total_seconds // 60}m"
    if total_seconds < 86400:
        return f"{total_seconds // 3600}h"
    return f"{total_seconds // 86400}d"


@app.command()
def use(
    user_id: str = typer.Option(..., "--user-id", help="Your user id"),
    token: str = typer.Option(..., "--token", help="Access token from the identity provider", hide_input=True),
    email: Optional[str] = typer.Option(None, "--email", help="Your email address"),
    expires_at: Optional[str] = typer.Option(None, "--expires-at", help="Token expiry (ISO 8601)"),
) -> None:
    """Store a session for subsequent commands."""
    expiry = None
    if expires_at:
        expiry = parse_timestamp(expires_at)
        if expiry is None:
            typer.secho(f"Invalid --expires-at value: {expires_at}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        if expiry <= utc_now():
            typer.secho("That token has already expired.", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)

    SessionStore().save(Session(user_id=user_id, access_token=token, email=email, expires_at=expiry))
    console.print(f"✅ Session saved for {email or user_id}")


@app.command()
def status() -> None:
    """Show the stored session."""
    session = SessionStore().load()
    if session is None:
        console.print("❌ Not signed in")
        console.print("   Run 'crewboard auth use' to store a session.")
        return

    console.print(f"✅ Signed in as {session.email or session.user_id}")
    console.print(f"   User id: {session.user_id}")
    if session.expires_at is None:
        console.print("   Token expiry: unknown")
    else:
        console.print(f"   Token expires in {_format_remaining(session.expires_at - utc_now())}")


@app.command()
def logout() -> None:
    """Forget the stored session."""
    store = SessionStore()
    if not store.exists():
        console.print("ℹ️  No active session")
        return
    store.clear()
    console.print("✅ Signed out")
