from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from widget_access.db.engine import DBEngine
from widget_access.db.settings import DBSettings
from widget_access.exceptions import WidgetAccessError
from widget_access.widgets.service import WidgetService

T = TypeVar("T")

app = typer.Typer(help="Team access grants for private widgets")


def _run(database_url: Optional[str], fn: Callable[[WidgetService], Awaitable[T]]) -> T:
    async def _main() -> T:
        engine = DBEngine(DBSettings(database_url=database_url) if database_url else DBSettings())
        try:
            return await fn(WidgetService(engine))
        finally:
            await engine.dispose()

    try:
        return asyncio.run(_main())
    except WidgetAccessError as exc:
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=1)


@app.command("grant")
def grant(
    widget_id: int = typer.Argument(..., help="Widget id."),
    team_id: str = typer.Argument(..., help="Team UUID."),
    database_url: Optional[str] = typer.Option(None, "--database-url"),
):
    """Let a team see a private widget. Granting twice is a no-op."""
    _run(database_url, lambda svc: svc.grant_team(widget_id, team_id))
    typer.echo(f"granted team {team_id} access to widget {widget_id}")


@app.command("revoke")
def revoke(
    widget_id: int = typer.Argument(...),
    team_id: str = typer.Argument(...),
    database_url: Optional[str] = typer.Option(None, "--database-url"),
):
    """Remove one team's access to a widget."""
    _run(database_url, lambda svc: svc.revoke_team(widget_id, team_id))
    typer.echo(f"revoked team {team_id} access to widget {widget_id}")


@app.command("teams")
def teams(
    widget_id: int = typer.Argument(...),
    database_url: Optional[str] = typer.Option(None, "--database-url"),
):
    """List the teams granted access to a widget."""
    rows = _run(database_url, lambda svc: svc.list_teams(widget_id))
    if not rows:
        typer.echo("no team grants")
        return
    for team in rows:
        typer.echo(f"{team.id}\t{team.name}")


def register(app_root: typer.Typer) -> None:
    app_root.add_typer(app, name="access")
