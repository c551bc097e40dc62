"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "team",
        sa.Column("team_id", sa.Uuid(), primary_key=True),
        sa.Column("team_name", sa.String(255), nullable=False),
    )
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(64), nullable=True),
        sa.Column(
            "team_id",
            sa.Uuid(),
            sa.ForeignKey("team.team_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_team_id", "users", ["team_id"])

    op.create_table(
        "widgets",
        sa.Column("widget_id", sa.Integer(), primary_key=True),
        sa.Column("widget_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("visibility", sa.String(32), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("redirect_link", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("public_id", sa.String(255), nullable=True),
        sa.Column("restricted_access", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_widgets_widget_name", "widgets", ["widget_name"])
    op.create_index("ix_widgets_public_id", "widgets", ["public_id"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("hex_code", sa.String(16), nullable=True),
    )
    op.create_table(
        "widget_categories",
        sa.Column(
            "widget_id",
            sa.Integer(),
            sa.ForeignKey("widgets.widget_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_table(
        "user_widget",
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "widget_id",
            sa.Integer(),
            sa.ForeignKey("widgets.widget_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column(
            "joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_user_widget_widget_id", "user_widget", ["widget_id"])

    op.create_table(
        "widget_team_access",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "widget_id",
            sa.Integer(),
            sa.ForeignKey("widgets.widget_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "team_id",
            sa.Uuid(),
            sa.ForeignKey("team.team_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("widget_id", "team_id", name="uq_widget_team_access"),
    )
    op.create_index("ix_widget_team_access_widget_id", "widget_team_access", ["widget_id"])
    op.create_index("ix_widget_team_access_team_id", "widget_team_access", ["team_id"])


def downgrade() -> None:
    op.drop_table("widget_team_access")
    op.drop_table("user_widget")
    op.drop_table("widget_categories")
    op.drop_table("categories")
    op.drop_table("widgets")
    op.drop_table("users")
    op.drop_table("team")
