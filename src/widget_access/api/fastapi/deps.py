from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Request

from widget_access.db.integration import EngineDep
from widget_access.widgets.service import WidgetService

from .settings import ApiConfig, get_api_config


def get_config(request: Request) -> ApiConfig:
    return getattr(request.app.state, "api_config", None) or get_api_config()


def get_viewer_id(request: Request) -> Optional[str]:
    """Raw viewer id from the identity header; validation is left to the resolver."""
    return request.headers.get(get_config(request).viewer_header) or None


def get_widget_service(engine: EngineDep) -> WidgetService:
    return WidgetService(engine)


ViewerIdDep = Annotated[Optional[str], Depends(get_viewer_id)]
WidgetServiceDep = Annotated[WidgetService, Depends(get_widget_service)]
