"""Team access grants for private widgets (``widget_team_access``)."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from widget_access.db.models import AccessGrant, Team
from widget_access.exceptions import TransactionFailure

from .validation import coerce_team_id, coerce_widget_id

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AccessGrantStore:
    """Persist which teams may see which private widgets.

    Works inside the caller's transaction: nothing here commits.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get(self, widget_id: int, team_id: uuid.UUID) -> Optional[AccessGrant]:
        stmt = (
            select(AccessGrant)
            .where(AccessGrant.widget_id == widget_id, AccessGrant.team_id == team_id)
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def grant(self, widget_id: Any, team_id: Any) -> AccessGrant:
        """Allow ``team_id`` to see ``widget_id``; granting twice is a no-op."""
        wid = coerce_widget_id(widget_id)
        tid = coerce_team_id(team_id)

        insert = _UPSERT_DIALECTS.get(self._session.get_bind().dialect.name)
        if insert is not None:
            stmt = (
                insert(AccessGrant)
                .values(widget_id=wid, team_id=tid)
                .on_conflict_do_nothing(index_elements=["widget_id", "team_id"])
            )
            await self._session.execute(stmt)
            grant = await self._get(wid, tid)
        else:
            grant = await self._get(wid, tid)
            if grant is None:
                grant = AccessGrant(widget_id=wid, team_id=tid)
                self._session.add(grant)
                await self._session.flush()
                await self._session.refresh(grant)

        if grant is None:
            raise TransactionFailure(f"Grant for widget {wid} was not persisted")
        logger.debug("granted team %s access to widget %s", tid, wid)
        return grant

    async def revoke(self, widget_id: Any, team_id: Any) -> Optional[AccessGrant]:
        """Delete one grant; returns the removed fact or None if it did not exist."""
        wid = coerce_widget_id(widget_id)
        tid = coerce_team_id(team_id)
        grant = await self._get(wid, tid)
        if grant is None:
            return None
        await self._session.delete(grant)
        await self._session.flush()
        logger.debug("revoked team %s access to widget %s", tid, wid)
        return grant

    async def revoke_all(self, widget_id: Any) -> int:
        """Delete every grant for a widget. Used by the private -> public cascade."""
        wid = coerce_widget_id(widget_id)
        res = await self._session.execute(delete(AccessGrant).where(AccessGrant.widget_id == wid))
        removed = int(res.rowcount or 0)
        logger.info("revoked %d team grant(s) for widget %s", removed, wid)
        return removed

    async def has_grant(self, widget_id: Any, team_id: Any) -> bool:
        return await self._get(coerce_widget_id(widget_id), coerce_team_id(team_id)) is not None

    async def list_teams_for(self, widget_id: Any) -> Sequence[Team]:
        wid = coerce_widget_id(widget_id)
        stmt = (
            select(Team)
            .join(AccessGrant, AccessGrant.team_id == Team.id)
            .where(AccessGrant.widget_id == wid)
            .order_by(Team.name, Team.id)
        )
        return (await self._session.execute(stmt)).scalars().all()

    async def count_for(self, widget_id: Any) -> int:
        wid = coerce_widget_id(widget_id)
        stmt = select(func.count()).select_from(AccessGrant).where(AccessGrant.widget_id == wid)
        return int((await self._session.execute(stmt)).scalar_one())
