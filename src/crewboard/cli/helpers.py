"""Shared CLI plumbing: console, logging, session lookup and coordinator lifecycle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from crewboard.config import CrewboardConfig
from crewboard.coordinator import Coordinator
from crewboard.outcome import Outcome
from crewboard.remote import RemoteStore
from crewboard.session import Session, SessionStore

console = Console()

T = TypeVar("T")


def configure_logging(verbose: bool) -> None:
    """Route package logs through rich; DEBUG with --verbose, WARNING otherwise."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=verbose)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    for name in ("crewboard", "httpx"):
        package_logger = logging.getLogger(name)
        package_logger.handlers = [handler]
        package_logger.setLevel(level)


def require_session() -> Session:
    session = SessionStore().load()
    if session is None:
        typer.secho("Not signed in (or the session expired).", fg=typer.colors.RED, err=True)
        typer.echo("   Run 'crewboard auth use --user-id ID --token TOKEN' first.", err=True)
        raise typer.Exit(1)
    return session


@asynccontextmanager
async def open_coordinator(session: Session) -> AsyncIterator[Coordinator]:
    config = CrewboardConfig()
    async with RemoteStore(
        config.get_server_url(),
        api_key=config.get_api_key(),
        access_token=session.access_token,
        timeout=config.get_timeout(),
    ) as remote:
        yield Coordinator.from_remote(
            remote,
            session.user_id,
            feed_limit=config.get_feed_limit(),
            code_ttl_days=config.get_code_ttl_days(),
        )


def run_with_coordinator(work: Callable[[Coordinator], Awaitable[T]]) -> T:
    """Run *work* against a coordinator for the signed-in user."""
    session = require_session()

    async def _main() -> T:
        async with open_coordinator(session) as coordinator:
            return await work(coordinator)

    return asyncio.run(_main())


def unwrap_or_exit(outcome: Outcome[T]) -> T:
    """Return the outcome's value, or print its error and exit 1."""
    if not outcome.ok:
        typer.secho(f"❌ {outcome.message}", fg=typer.colors.RED, err=True)
        if outcome.retryable:
            typer.echo("   This looks temporary. Try again in a moment.", err=True)
        raise typer.Exit(1)
    return outcome.value  # type: ignore[return-value]


def short_id(value: str | None) -> str:
    if not value:
        return "-"
    return value[:8]
