"""Query-time visibility resolution.

A viewer sees a widget when either

* the widget is public (or has no visibility set), or the viewer develops it; or
* the widget is private, it is granted to the viewer's team, and the viewer's
  role reaches widgets through team grants (``widget developer`` does not).

Both conditions are built as separate predicates and OR'd into one statement,
so a widget matching both comes back once. Nothing is cached: visibility is
recomputed on every call.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import Select, and_, exists, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from widget_access.db.models import AccessGrant, DeveloperRelation, User, Widget, WidgetCategory
from widget_access.exceptions import NotFoundError, ValidationError
from widget_access.security.permissions import viewer_reaches_via_team_grant

from .aggregate import RelationAggregator
from .constants import Visibility
from .schemas import WidgetView
from .validation import coerce_user_id, coerce_widget_id

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class Viewer:
    user_id: Optional[int] = None
    team_id: Optional[uuid.UUID] = None
    role: Optional[str] = None

    @property
    def anonymous(self) -> bool:
        return self.user_id is None

    @property
    def uses_team_grants(self) -> bool:
        return self.team_id is not None and viewer_reaches_via_team_grant(self.role)


ANONYMOUS = Viewer()


def public_clause() -> ColumnElement[bool]:
    return or_(
        func.lower(Widget.visibility) == Visibility.PUBLIC.value,
        Widget.visibility.is_(None),
    )


def owned_clause(user_id: int) -> ColumnElement[bool]:
    return exists().where(
        DeveloperRelation.widget_id == Widget.id,
        DeveloperRelation.user_id == user_id,
    )


def team_granted_clause(team_id: uuid.UUID) -> ColumnElement[bool]:
    return and_(
        func.lower(Widget.visibility) == Visibility.PRIVATE.value,
        exists().where(
            AccessGrant.widget_id == Widget.id,
            AccessGrant.team_id == team_id,
        ),
    )


def access_clause(viewer: Viewer) -> ColumnElement[bool]:
    """The full visibility predicate for ``viewer``."""
    direct = public_clause()
    if not viewer.anonymous:
        direct = or_(direct, owned_clause(viewer.user_id))
    if viewer.uses_team_grants:
        return or_(direct, team_granted_clause(viewer.team_id))
    return direct


def category_clause(category_ids: Iterable[int]) -> ColumnElement[bool]:
    return exists().where(
        WidgetCategory.widget_id == Widget.id,
        WidgetCategory.category_id.in_(list(category_ids)),
    )


class VisibilityResolver:
    """Compute the widgets a viewer may see, enriched with their relations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_viewer(self, viewer_id: Any) -> Viewer:
        """Resolve a raw viewer id to a :class:`Viewer`.

        Never raises: a malformed id reads as anonymous, and a failed team/role
        lookup keeps the id (ownership still applies) without team or role.
        """
        if viewer_id is None:
            return ANONYMOUS
        try:
            user_id = coerce_user_id(viewer_id)
        except ValidationError:
            logger.info("ignoring malformed viewer id %r", viewer_id)
            return ANONYMOUS

        try:
            row = (
                await self._session.execute(
                    select(User.team_id, User.role).where(User.id == user_id)
                )
            ).one_or_none()
        except SQLAlchemyError:
            logger.warning(
                "viewer lookup failed, resolving without team", exc_info=True,
                extra={"viewer_id": user_id},
            )
            await self._session.rollback()
            return Viewer(user_id=user_id)

        if row is None:
            return Viewer(user_id=user_id)
        return Viewer(user_id=user_id, team_id=row.team_id, role=row.role)

    def statement(
        self,
        viewer: Viewer,
        *,
        name: Optional[str] = None,
        categories: Optional[Sequence[int]] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Select:
        stmt = select(Widget).where(access_clause(viewer))
        if name:
            stmt = stmt.where(Widget.name.icontains(name.strip(), autoescape=True))
        if categories:
            stmt = stmt.where(category_clause(categories))
        stmt = stmt.order_by(Widget.id)
        if page is not None or limit is not None:
            size = limit or DEFAULT_PAGE_SIZE
            stmt = stmt.limit(size).offset(((page or 1) - 1) * size)
        return stmt

    async def resolve(
        self,
        viewer_id: Any = None,
        *,
        name: Optional[str] = None,
        categories: Optional[Sequence[int]] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[WidgetView]:
        viewer = await self.load_viewer(viewer_id)
        stmt = self.statement(viewer, name=name, categories=categories, page=page, limit=limit)
        widgets = (await self._session.execute(stmt)).scalars().all()
        logger.debug(
            "resolved %d widget(s)", len(widgets),
            extra={"viewer_id": viewer.user_id},
        )
        return await RelationAggregator(self._session).aggregate(widgets)

    async def get(self, widget_id: Any, viewer_id: Any = None) -> WidgetView:
        wid = coerce_widget_id(widget_id)
        viewer = await self.load_viewer(viewer_id)
        stmt = select(Widget).where(Widget.id == wid, access_clause(viewer))
        widget = (await self._session.execute(stmt)).scalar_one_or_none()
        if widget is None:
            raise NotFoundError("Widget not found", detail={"widget_id": wid})
        return await RelationAggregator(self._session).aggregate_one(widget)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Viewer",
    "ANONYMOUS",
    "public_clause",
    "owned_clause",
    "team_granted_clause",
    "access_clause",
    "category_clause",
    "VisibilityResolver",
]
