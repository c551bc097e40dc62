from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .base import Base
from .engine import DBEngine
from .settings import DBSettings


async def create_all(async_engine: AsyncEngine) -> None:
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all(async_engine: AsyncEngine) -> None:
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def make_sqlite_memory_engine(*, echo: bool = False) -> DBEngine:
    settings = DBSettings(database_url="sqlite+aiosqlite:///:memory:", echo=echo)
    return DBEngine(settings)


@asynccontextmanager
async def ephemeral_db(*, echo: bool = False) -> AsyncIterator[DBEngine]:
    """In-memory database with the full schema, disposed on exit."""
    engine = make_sqlite_memory_engine(echo=echo)
    await create_all(engine.engine)
    try:
        yield engine
    finally:
        await engine.dispose()
