"""Collect developer ids and categories onto widget rows.

Each many-valued relation is read with its own DISTINCT query keyed by widget
id, then folded in Python. Joining both relations onto the widget row at once
would multiply rows (N developers x M categories); here every input widget maps
to exactly one ``WidgetView``.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from widget_access.db.models import Category, DeveloperRelation, Widget, WidgetCategory

from .schemas import CategoryView, WidgetView


class RelationAggregator:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def developer_ids_by_widget(self, widget_ids: Iterable[int]) -> dict[int, list[int]]:
        ids = list(dict.fromkeys(widget_ids))
        out: dict[int, list[int]] = defaultdict(list)
        if not ids:
            return out
        stmt = (
            select(DeveloperRelation.widget_id, DeveloperRelation.user_id)
            .where(DeveloperRelation.widget_id.in_(ids))
            .distinct()
            .order_by(DeveloperRelation.widget_id, DeveloperRelation.user_id)
        )
        for widget_id, user_id in (await self._session.execute(stmt)).all():
            out[widget_id].append(user_id)
        return out

    async def categories_by_widget(self, widget_ids: Iterable[int]) -> dict[int, list[CategoryView]]:
        ids = list(dict.fromkeys(widget_ids))
        out: dict[int, list[CategoryView]] = defaultdict(list)
        if not ids:
            return out
        stmt = (
            select(WidgetCategory.widget_id, Category.id, Category.name, Category.hex_code)
            .join(Category, Category.id == WidgetCategory.category_id)
            .where(WidgetCategory.widget_id.in_(ids))
            .distinct()
            .order_by(WidgetCategory.widget_id, Category.id)
        )
        for widget_id, category_id, name, hex_code in (await self._session.execute(stmt)).all():
            out[widget_id].append(CategoryView(id=category_id, name=name, hex_code=hex_code))
        return out

    async def aggregate(self, widgets: Sequence[Widget]) -> list[WidgetView]:
        """One view per input widget, in input order."""
        if not widgets:
            return []
        ids = [w.id for w in widgets]
        developers = await self.developer_ids_by_widget(ids)
        categories = await self.categories_by_widget(ids)
        return [
            WidgetView(
                id=w.id,
                name=w.name,
                description=w.description,
                visibility=w.visibility,
                status=w.status,
                created_at=w.created_at,
                redirect_link=w.redirect_link,
                image_url=w.image_url,
                public_id=w.public_id,
                restricted_access=w.restricted_access,
                developer_ids=list(developers.get(w.id, [])),
                categories=list(categories.get(w.id, [])),
            )
            for w in widgets
        ]

    async def aggregate_one(self, widget: Widget) -> WidgetView:
        return (await self.aggregate([widget]))[0]
