"""create catalog and list tables

Revision ID: 5b2e91c4d7a0
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "5b2e91c4d7a0"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("username", sa.String(length=255), nullable=False, unique=True),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("watch_history", sa.JSON(), nullable=False),
    )

    op.create_table(
        "movies",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("genres", sa.JSON(), nullable=False),
        sa.Column("release_date", sa.Date(), nullable=False),
        sa.Column("director", sa.String(length=255), nullable=False),
        sa.Column("actors", sa.JSON(), nullable=False),
    )

    op.create_table(
        "tv_shows",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("genres", sa.JSON(), nullable=False),
        sa.Column("episodes", sa.JSON(), nullable=False),
    )

    op.create_table(
        "user_lists",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=128), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "list_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("content_id", sa.String(length=128), nullable=False),
        sa.Column("content_type", sa.String(length=16), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["user_lists.user_id"],
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "user_id",
            "content_id",
            name="uq_list_entries_user_content",
        ),
    )

    op.create_index(
        "ix_list_entries_user_added",
        "list_entries",
        ["user_id", "added_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_list_entries_user_added", table_name="list_entries")
    op.drop_table("list_entries")
    op.drop_table("user_lists")
    op.drop_table("tv_shows")
    op.drop_table("movies")
    op.drop_table("users")
