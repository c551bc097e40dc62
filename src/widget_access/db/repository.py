from __future__ import annotations

from typing import Any, Generic, Optional, Sequence, Type, TypeVar, cast

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

T = TypeVar("T")


class Repository(Generic[T]):
    def __init__(self, session: AsyncSession, model: Type[T]):
        self.session = session
        self.model = model

    def _where(self, where: Optional[dict[str, Any]]):
        return and_(*[(cast(Any, getattr(self.model, k)) == v) for k, v in where.items()])

    async def get(self, id: Any) -> Optional[T]:
        return await self.session.get(self.model, id)

    async def exists(self, id: Any) -> bool:
        stmt = select(func.count()).select_from(self.model).where(cast(Any, self.model).id == id)
        return int((await self.session.execute(stmt)).scalar_one()) > 0

    async def list(
        self,
        *,
        where: Optional[dict[str, Any]] = None,
        order_by: InstrumentedAttribute | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Sequence[T]:
        stmt = select(self.model)
        if where:
            stmt = stmt.where(self._where(where))
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return (await self.session.execute(stmt)).scalars().all()

    async def count(self, where: Optional[dict[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(self.model)
        if where:
            stmt = stmt.where(self._where(where))
        return int((await self.session.execute(stmt)).scalar_one())

    async def create(self, **data) -> T:
        obj = self.model(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def delete_where(self, **where) -> int:
        res = await self.session.execute(delete(self.model).where(self._where(where)))
        return int(res.rowcount or 0)

    async def delete(self, id: Any) -> int:
        cond = cast(Any, self.model).id == id
        res = await self.session.execute(delete(self.model).where(cond))
        return int(res.rowcount or 0)
