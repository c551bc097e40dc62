"""Widget operations exposed to the HTTP layer and the CLI.

Reads run in a plain session. Writes run in a :class:`UnitOfWork`, so each
call is one transaction. Domain errors pass through unchanged and anything else
raised inside a write becomes :class:`TransactionFailure` after the rollback.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from widget_access.db.engine import DBEngine
from widget_access.db.models import (
    AccessGrant,
    Category,
    DeveloperRelation,
    Team,
    User,
    Widget,
    WidgetCategory,
)
from widget_access.db.uow import UnitOfWork
from widget_access.exceptions import (
    ConflictError,
    NotFoundError,
    TransactionFailure,
    ValidationError,
    WidgetAccessError,
)

from .aggregate import RelationAggregator
from .constants import DeveloperRole, WidgetStatus, is_private
from .grants import AccessGrantStore
from .schemas import (
    AccessGrantRead,
    ApprovedWidgetCreate,
    CategoryView,
    DeveloperRead,
    TeamRead,
    WidgetListFilter,
    WidgetPatch,
    WidgetView,
)
from .updater import WidgetUpdater
from .validation import coerce_int_id, coerce_team_id, coerce_user_id, coerce_widget_id
from .visibility import VisibilityResolver

logger = logging.getLogger(__name__)


class WidgetService:
    def __init__(self, engine: DBEngine) -> None:
        self._engine = engine
        self._updater = WidgetUpdater(engine)

    @asynccontextmanager
    async def _write(self, action: str) -> AsyncIterator[UnitOfWork]:
        try:
            async with UnitOfWork(self._engine) as uow:
                yield uow
        except WidgetAccessError:
            raise
        except Exception as exc:
            logger.exception("%s rolled back", action)
            raise TransactionFailure(f"Failed to {action}") from exc

    @staticmethod
    async def _require_widget(session, widget_id: int) -> Widget:
        widget = await session.get(Widget, widget_id)
        if widget is None:
            raise NotFoundError("Widget not found", detail={"widget_id": widget_id})
        return widget

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_widgets(
        self,
        filters: Optional[WidgetListFilter] = None,
        viewer_id: Any = None,
    ) -> list[WidgetView]:
        filters = filters or WidgetListFilter()
        async with self._engine.session() as session:
            return await VisibilityResolver(session).resolve(
                viewer_id,
                name=filters.name,
                categories=filters.categories,
                page=filters.page,
                limit=filters.limit,
            )

    async def get_widget(self, widget_id: Any, viewer_id: Any = None) -> WidgetView:
        async with self._engine.session() as session:
            return await VisibilityResolver(session).get(widget_id, viewer_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def patch_widget(
        self, widget_id: Any, fields: WidgetPatch | Mapping[str, Any]
    ) -> WidgetView:
        widget = await self._updater.update(widget_id, fields)
        async with self._engine.session() as session:
            return await RelationAggregator(session).aggregate_one(widget)

    async def create_approved_widget(
        self, payload: ApprovedWidgetCreate | Mapping[str, Any]
    ) -> WidgetView:
        """Insert an approved widget with its owner and, when private, its team grants."""
        if not isinstance(payload, ApprovedWidgetCreate):
            if not isinstance(payload, Mapping):
                raise ValidationError(
                    "Invalid widget payload",
                    detail={"expected": "object", "got": type(payload).__name__},
                )
            try:
                payload = ApprovedWidgetCreate.model_validate(dict(payload))
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Invalid widget payload",
                    detail=exc.errors(include_url=False, include_context=False),
                ) from exc
        owner_id = coerce_user_id(payload.user_id)
        team_ids = list(dict.fromkeys(payload.selected_team_ids))

        async with self._write("create widget") as uow:
            session = uow.session
            if await session.get(User, owner_id) is None:
                raise NotFoundError("User not found", detail={"user_id": owner_id})

            widget = Widget(
                name=payload.name,
                description=payload.description,
                visibility=payload.visibility,
                status=WidgetStatus.APPROVED.value,
                redirect_link=payload.redirect_link,
                image_url=payload.image_url,
                public_id=payload.public_id,
                restricted_access=payload.restricted_access,
            )
            session.add(widget)
            await session.flush()
            session.add(
                DeveloperRelation(
                    user_id=owner_id, widget_id=widget.id, role=DeveloperRole.OWNER.value
                )
            )

            granted = 0
            if is_private(payload.visibility) and team_ids:
                found = set(
                    (await session.execute(select(Team.id).where(Team.id.in_(team_ids))))
                    .scalars()
                    .all()
                )
                missing = [str(t) for t in team_ids if t not in found]
                if missing:
                    raise NotFoundError("Team not found", detail={"team_ids": missing})
                store = AccessGrantStore(session)
                for team_id in team_ids:
                    await store.grant(widget.id, team_id)
                granted = len(team_ids)

            await session.flush()
            await session.refresh(widget)
            widget_id = widget.id
            uow.on_commit(
                lambda: logger.info(
                    "approved widget created with %d team grant(s)", granted,
                    extra={"widget_id": widget_id},
                )
            )

        async with self._engine.session() as session:
            return await RelationAggregator(session).aggregate_one(widget)

    async def delete_widget(self, widget_id: Any) -> int:
        wid = coerce_widget_id(widget_id)
        async with self._write("delete widget") as uow:
            session = uow.session
            await self._require_widget(session, wid)
            for model in (AccessGrant, DeveloperRelation, WidgetCategory):
                await uow.repo(model).delete_where(widget_id=wid)
            await uow.repo(Widget).delete(wid)
            uow.on_commit(lambda: logger.info("widget deleted", extra={"widget_id": wid}))
        return wid

    # ------------------------------------------------------------------
    # Developers
    # ------------------------------------------------------------------

    async def list_developers(self, widget_id: Any) -> list[DeveloperRead]:
        wid = coerce_widget_id(widget_id)
        async with self._engine.session() as session:
            await self._require_widget(session, wid)
            stmt = (
                select(DeveloperRelation.user_id, User.email, DeveloperRelation.role)
                .join(User, User.id == DeveloperRelation.user_id)
                .where(DeveloperRelation.widget_id == wid)
                .order_by(DeveloperRelation.user_id)
            )
            rows = (await session.execute(stmt)).all()
        return [DeveloperRead(user_id=r.user_id, email=r.email, role=r.role) for r in rows]

    async def add_developer(self, widget_id: Any, user_id: Any) -> DeveloperRead:
        wid = coerce_widget_id(widget_id)
        uid = coerce_user_id(user_id)
        async with self._write("add developer") as uow:
            session = uow.session
            await self._require_widget(session, wid)
            user = await session.get(User, uid)
            if user is None:
                raise NotFoundError("User not found", detail={"user_id": uid})
            if await session.get(DeveloperRelation, (uid, wid)) is not None:
                raise ConflictError(
                    f"User {uid} is already a developer of widget {wid}",
                    detail={"widget_id": wid, "user_id": uid},
                )
            session.add(
                DeveloperRelation(user_id=uid, widget_id=wid, role=DeveloperRole.MEMBER.value)
            )
            await session.flush()
            email = user.email
        return DeveloperRead(user_id=uid, email=email, role=DeveloperRole.MEMBER.value)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self, widget_id: Any) -> list[CategoryView]:
        wid = coerce_widget_id(widget_id)
        async with self._engine.session() as session:
            await self._require_widget(session, wid)
            return (await RelationAggregator(session).categories_by_widget([wid])).get(wid, [])

    async def add_category(self, widget_id: Any, category_id: Any) -> CategoryView:
        wid = coerce_widget_id(widget_id)
        cid = coerce_int_id(category_id, kind="category")
        async with self._write("add category") as uow:
            session = uow.session
            await self._require_widget(session, wid)
            category = await session.get(Category, cid)
            if category is None:
                raise NotFoundError("Category not found", detail={"category_id": cid})
            if await session.get(WidgetCategory, (wid, cid)) is not None:
                raise ConflictError(
                    "This category is already associated with this widget",
                    detail={"widget_id": wid, "category_id": cid},
                )
            session.add(WidgetCategory(widget_id=wid, category_id=cid))
            await session.flush()
            view = CategoryView.model_validate(category)
        return view

    async def remove_category(self, widget_id: Any, category_id: Any) -> None:
        wid = coerce_widget_id(widget_id)
        cid = coerce_int_id(category_id, kind="category")
        async with self._write("remove category") as uow:
            session = uow.session
            await self._require_widget(session, wid)
            link = await session.get(WidgetCategory, (wid, cid))
            if link is None:
                raise NotFoundError(
                    "Category not found for this widget",
                    detail={"widget_id": wid, "category_id": cid},
                )
            await session.delete(link)

    # ------------------------------------------------------------------
    # Team access
    # ------------------------------------------------------------------

    async def grant_team(self, widget_id: Any, team_id: Any) -> AccessGrantRead:
        wid = coerce_widget_id(widget_id)
        tid = coerce_team_id(team_id)
        async with self._write("grant team access") as uow:
            session = uow.session
            await self._require_widget(session, wid)
            if await session.get(Team, tid) is None:
                raise NotFoundError("Team not found", detail={"team_id": str(tid)})
            grant = await AccessGrantStore(session).grant(wid, tid)
            view = AccessGrantRead.model_validate(grant)
        return view

    async def revoke_team(self, widget_id: Any, team_id: Any) -> None:
        wid = coerce_widget_id(widget_id)
        tid = coerce_team_id(team_id)
        async with self._write("revoke team access") as uow:
            removed = await AccessGrantStore(uow.session).revoke(wid, tid)
            if removed is None:
                raise NotFoundError(
                    "Team access not found",
                    detail={"widget_id": wid, "team_id": str(tid)},
                )

    async def list_teams(self, widget_id: Any) -> list[TeamRead]:
        wid = coerce_widget_id(widget_id)
        async with self._engine.session() as session:
            await self._require_widget(session, wid)
            teams: Sequence[Team] = await AccessGrantStore(session).list_teams_for(wid)
            return [TeamRead.model_validate(t) for t in teams]


__all__ = ["WidgetService"]
