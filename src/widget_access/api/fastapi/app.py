from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from widget_access.app import CURRENT_ENVIRONMENT
from widget_access.app.settings import AppSettings, get_app_settings
from widget_access.db.engine import DBEngine
from widget_access.db.integration import attach_db
from widget_access.widgets.router import router as widgets_router

from .health import router as health_router
from .middleware.errors.catchall import CatchAllExceptionMiddleware
from .middleware.errors.handlers import register_error_handlers
from .middleware.timeout import HandlerTimeoutMiddleware
from .settings import ApiConfig, get_api_config

logger = logging.getLogger(__name__)


def create_app(
    app_settings: AppSettings | None = None,
    api_config: ApiConfig | None = None,
    engine: DBEngine | None = None,
) -> FastAPI:
    """Build the widget-access API.

    ``engine`` lets callers (tests, the CLI) supply a ready database; otherwise
    one is built from ``DBSettings`` and disposed on shutdown.
    """
    app_settings = app_settings or get_app_settings()
    api_config = api_config or get_api_config()

    app = FastAPI(title=app_settings.name, version=app_settings.version)
    app.state.api_config = api_config

    app.add_middleware(HandlerTimeoutMiddleware, timeout_seconds=api_config.request_timeout_seconds)
    app.add_middleware(CatchAllExceptionMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    attach_db(app, engine=engine)

    app.include_router(widgets_router, prefix=api_config.base_prefix)
    app.include_router(health_router, prefix=api_config.base_prefix)

    logger.info(
        f"{app_settings.version} version of {app_settings.name} initialized [env: {CURRENT_ENVIRONMENT}]"
    )
    return app
