from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from .engine import DBEngine
from .settings import DBSettings, get_db_settings

logger = logging.getLogger(__name__)


def attach_db(app: FastAPI, engine: DBEngine | None = None, settings: DBSettings | None = None) -> DBEngine:
    """Bind a ``DBEngine`` to ``app.state`` and dispose it on shutdown."""
    settings = settings or get_db_settings()
    engine = engine or DBEngine(settings)
    app.state.db_engine = engine  # type: ignore[attr-defined]

    existing = getattr(app.router, "lifespan_context", None)

    @asynccontextmanager
    async def composed_lifespan(_app: FastAPI):
        _app.state.db_engine = engine  # type: ignore[attr-defined]
        try:
            url = engine.engine.url
            logger.info(
                "DB attached: url=%s driver=%s",
                url.render_as_string(hide_password=True),
                url.get_backend_name(),
            )
            if existing:
                async with existing(_app):
                    yield
            else:
                yield
        finally:
            await engine.dispose()

    app.router.lifespan_context = composed_lifespan
    return engine


def get_engine(request: Request) -> DBEngine:
    return request.app.state.db_engine  # type: ignore[attr-defined]


EngineDep = Annotated[DBEngine, Depends(get_engine)]
