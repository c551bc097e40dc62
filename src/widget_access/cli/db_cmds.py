from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from widget_access.db.engine import DBEngine
from widget_access.db.settings import DBSettings
from widget_access.db.testing import create_all, drop_all

app = typer.Typer(help="Database schema commands")


def _engine(database_url: Optional[str]) -> DBEngine:
    return DBEngine(DBSettings(database_url=database_url) if database_url else DBSettings())


async def _run_schema(database_url: Optional[str], drop: bool) -> None:
    engine = _engine(database_url)
    try:
        await (drop_all if drop else create_all)(engine.engine)
    finally:
        await engine.dispose()


@app.command("create-all")
def create_all_cmd(
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Overrides DB_DATABASE_URL / DATABASE_URL."
    ),
):
    """Create every table directly from the models (no migration history)."""
    asyncio.run(_run_schema(database_url, drop=False))
    typer.echo("tables created")


@app.command("drop-all")
def drop_all_cmd(
    database_url: Optional[str] = typer.Option(None, "--database-url"),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
):
    """Drop every table."""
    if not yes:
        typer.confirm("Drop all widget-access tables?", abort=True)
    asyncio.run(_run_schema(database_url, drop=True))
    typer.echo("tables dropped")


@app.command("upgrade")
def upgrade_cmd(
    revision: str = typer.Argument("head", help="Target revision."),
    config: Path = typer.Option(Path("alembic.ini"), "--config", "-c", help="Path to alembic.ini"),
):
    """Apply Alembic migrations."""
    from alembic import command
    from alembic.config import Config

    if not config.exists():
        typer.echo(f"alembic config not found: {config}", err=True)
        raise typer.Exit(code=2)
    command.upgrade(Config(str(config)), revision)


def register(app_root: typer.Typer) -> None:
    app_root.add_typer(app, name="db")
