"""ORM models for widgets, teams, users and the relations between them.

Column names follow the schema the service has always used (``widget_id``,
``widget_name``, ``user_widget``, ``widget_team_access``) so the models map onto
existing databases without renames.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, TimestampMixin


class Team(Base):
    __tablename__ = "team"

    id: Mapped[uuid.UUID] = mapped_column("team_id", primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column("team_name", String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name!r})>"


class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column("user_id", Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 'widget developer', 'league', 'master', ...
    role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    team_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("team.team_id", ondelete="SET NULL"), nullable=True, index=True
    )

    def __repr__(self) -> str:
        state = inspect(self)
        if state.detached or state.expired:
            return f"<User at {hex(id(self))}>"
        return f"<User(id={self.id}, role={self.role!r})>"


class Widget(Base, TimestampMixin):
    __tablename__ = "widgets"

    id: Mapped[int] = mapped_column("widget_id", Integer, primary_key=True)
    name: Mapped[str] = mapped_column("widget_name", String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 'public' | 'private' in any case; NULL reads as public
    visibility: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    redirect_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    public_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    restricted_access: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        state = inspect(self)
        if state.detached or state.expired:
            return f"<Widget at {hex(id(self))}>"
        return f"<Widget(id={self.id}, name={self.name!r}, visibility={self.visibility!r})>"


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    hex_code: Mapped[str | None] = mapped_column(String(16), nullable=True)


class WidgetCategory(Base):
    __tablename__ = "widget_categories"

    widget_id: Mapped[int] = mapped_column(
        ForeignKey("widgets.widget_id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )


class DeveloperRelation(Base):
    __tablename__ = "user_widget"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True
    )
    widget_id: Mapped[int] = mapped_column(
        ForeignKey("widgets.widget_id", ondelete="CASCADE"), primary_key=True, index=True
    )
    # 'owner' | 'member'
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="member")
    joined_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class AccessGrant(Base, CreatedAtMixin):
    __tablename__ = "widget_team_access"
    __table_args__ = (UniqueConstraint("widget_id", "team_id", name="uq_widget_team_access"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    widget_id: Mapped[int] = mapped_column(
        ForeignKey("widgets.widget_id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("team.team_id", ondelete="CASCADE"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<AccessGrant(widget_id={self.widget_id}, team_id={self.team_id})>"


__all__ = [
    "Team",
    "User",
    "Widget",
    "Category",
    "WidgetCategory",
    "DeveloperRelation",
    "AccessGrant",
]
