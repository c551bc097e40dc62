from __future__ import annotations

from typing import Optional

import typer

from widget_access.app.core.logging import setup_logging
from widget_access.app.settings import get_app_settings

from .access_cmds import register as register_access
from .db_cmds import register as register_db

app = typer.Typer(no_args_is_help=True, add_completion=False, help="widget-access service tools")
register_db(app)
register_access(app)


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides LOG_LEVEL."),
):
    settings = get_app_settings()
    setup_logging(level=log_level or settings.log_level, fmt=settings.log_format)


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_app_settings()
    uvicorn.run(
        "widget_access.api.fastapi.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_config=None,
    )


def main():
    app()


__all__ = ["app", "main"]
