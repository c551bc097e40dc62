"""
Shared fixtures for widget-access tests.

Every test gets its own in-memory SQLite database with the full schema, plus a
``Seeder`` for inserting teams, users, widgets, categories and grants.
"""

from __future__ import annotations

import uuid
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

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
from widget_access.db.testing import ephemeral_db
from widget_access.db.uow import UnitOfWork


def pytest_collection_modifyitems(config, items):
    """Mark visibility and grant tests so `-m security` selects them."""
    for item in items:
        norm = str(item.fspath).replace("\\", "/")
        if "visibility" in norm or "grants" in norm or "permissions" in norm:
            item.add_marker(pytest.mark.security)
        if "updater" in norm or "uow" in norm:
            item.add_marker(pytest.mark.concurrency)


class Seeder:
    """Inserts fixture rows, one committed transaction per call."""

    def __init__(self, engine: DBEngine):
        self.engine = engine
        self._emails = 0

    async def team(self, name: str = "Team") -> Team:
        async with UnitOfWork(self.engine) as uow:
            return await uow.repo(Team).create(id=uuid.uuid4(), name=name)

    async def user(self, *, role: Optional[str] = "league", team: Optional[Team] = None) -> User:
        self._emails += 1
        async with UnitOfWork(self.engine) as uow:
            return await uow.repo(User).create(
                email=f"user{self._emails}@example.com",
                first_name="Test",
                last_name=f"User{self._emails}",
                role=role,
                team_id=team.id if team else None,
            )

    async def widget(
        self,
        name: str = "Widget",
        *,
        visibility: Optional[str] = "public",
        owner: Optional[User] = None,
        status: str = "approved",
        public_id: Optional[str] = None,
    ) -> Widget:
        async with UnitOfWork(self.engine) as uow:
            widget = await uow.repo(Widget).create(
                name=name,
                visibility=visibility,
                status=status,
                public_id=public_id,
                restricted_access=False,
            )
            if owner is not None:
                await uow.repo(DeveloperRelation).create(
                    user_id=owner.id, widget_id=widget.id, role="owner"
                )
            await uow.session.refresh(widget)
            return widget

    async def developer(self, widget: Widget, user: User, role: str = "member") -> None:
        async with UnitOfWork(self.engine) as uow:
            await uow.repo(DeveloperRelation).create(user_id=user.id, widget_id=widget.id, role=role)

    async def category(self, name: str, hex_code: Optional[str] = None) -> Category:
        async with UnitOfWork(self.engine) as uow:
            return await uow.repo(Category).create(name=name, hex_code=hex_code)

    async def tag(self, widget: Widget, category: Category) -> None:
        async with UnitOfWork(self.engine) as uow:
            await uow.repo(WidgetCategory).create(widget_id=widget.id, category_id=category.id)

    async def grant(self, widget: Widget, team: Team) -> None:
        async with UnitOfWork(self.engine) as uow:
            await uow.repo(AccessGrant).create(widget_id=widget.id, team_id=team.id)


@pytest_asyncio.fixture
async def engine():
    async with ephemeral_db() as eng:
        yield eng


@pytest.fixture
def seed(engine) -> Seeder:
    return Seeder(engine)


@pytest.fixture
def app(engine):
    from widget_access.api.fastapi.app import create_app

    return create_app(engine=engine)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
