from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Query, Response, status

from widget_access.api.fastapi.deps import ViewerIdDep, WidgetServiceDep

from .schemas import (
    AccessGrantRead,
    ApprovedWidgetCreate,
    CategoryAttach,
    CategoryView,
    DeveloperAdd,
    DeveloperRead,
    TeamGrantCreate,
    TeamRead,
    WidgetListFilter,
    WidgetPatch,
    WidgetView,
)

ROUTER_PREFIX = "/widgets"
ROUTER_TAGS = ["widgets"]

router = APIRouter(prefix=ROUTER_PREFIX, tags=ROUTER_TAGS)


@router.get("", response_model=list[WidgetView])
async def list_widgets(
    service: WidgetServiceDep,
    viewer_id: ViewerIdDep,
    name: Optional[str] = None,
    categories: Optional[list[int]] = Query(default=None),
    page: Optional[int] = Query(default=None, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
):
    filters = WidgetListFilter(name=name, categories=categories, page=page, limit=limit)
    return await service.list_widgets(filters, viewer_id)


@router.post("/create", response_model=WidgetView, status_code=status.HTTP_201_CREATED)
async def create_approved_widget(payload: ApprovedWidgetCreate, service: WidgetServiceDep):
    return await service.create_approved_widget(payload)


@router.get("/{widget_id}", response_model=WidgetView)
async def get_widget(widget_id: int, service: WidgetServiceDep, viewer_id: ViewerIdDep):
    return await service.get_widget(widget_id, viewer_id)


@router.patch("/{widget_id}", response_model=WidgetView)
async def patch_widget(widget_id: int, patch: WidgetPatch, service: WidgetServiceDep):
    return await service.patch_widget(widget_id, patch)


@router.delete("/{widget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_widget(widget_id: int, service: WidgetServiceDep):
    await service.delete_widget(widget_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Team access
# ---------------------------------------------------------------------------


@router.get("/{widget_id}/teams", response_model=list[TeamRead])
async def list_teams(widget_id: int, service: WidgetServiceDep):
    return await service.list_teams(widget_id)


@router.post(
    "/{widget_id}/teams", response_model=AccessGrantRead, status_code=status.HTTP_201_CREATED
)
async def grant_team(widget_id: int, payload: TeamGrantCreate, service: WidgetServiceDep):
    return await service.grant_team(widget_id, payload.team_id)


@router.delete("/{widget_id}/teams/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_team(widget_id: int, team_id: uuid.UUID, service: WidgetServiceDep):
    await service.revoke_team(widget_id, team_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Developers
# ---------------------------------------------------------------------------


@router.get("/{widget_id}/developers", response_model=list[DeveloperRead])
async def list_developers(widget_id: int, service: WidgetServiceDep):
    return await service.list_developers(widget_id)


@router.post(
    "/{widget_id}/developers", response_model=DeveloperRead, status_code=status.HTTP_201_CREATED
)
async def add_developer(widget_id: int, payload: DeveloperAdd, service: WidgetServiceDep):
    return await service.add_developer(widget_id, payload.developer_id)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@router.get("/{widget_id}/categories", response_model=list[CategoryView])
async def list_categories(widget_id: int, service: WidgetServiceDep):
    return await service.list_categories(widget_id)


@router.post(
    "/{widget_id}/categories", response_model=CategoryView, status_code=status.HTTP_201_CREATED
)
async def add_category(widget_id: int, payload: CategoryAttach, service: WidgetServiceDep):
    return await service.add_category(widget_id, payload.category_id)


@router.delete(
    "/{widget_id}/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_category(widget_id: int, category_id: int, service: WidgetServiceDep):
    await service.remove_category(widget_id, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
