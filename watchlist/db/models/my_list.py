"""SQLAlchemy ORM models for per-user watch lists.

A ``UserList`` row is created lazily the first time a user adds something and
is never deleted. Entries live in their own table so duplicate prevention can
rest on a single ``UNIQUE (user_id, content_id)`` constraint.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from . import Base, utcnow


class UserList(Base):
    """List aggregate owned by a single user."""

    __tablename__ = "user_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        nullable=False,
        doc=(
            "Opaque identifier for the owning user. Not a foreign key so lists"
            " survive catalog reloads of the users table."
        ),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        doc="Touched on every successful add or remove.",
    )


class ListEntryRecord(Base):
    """One catalog item referenced from a user's list."""

    __tablename__ = "list_entries"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "content_id",
            name="uq_list_entries_user_content",
        ),
        Index("ix_list_entries_user_added", "user_id", "added_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Insertion order; breaks ties between equal ``added_at`` values.",
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("user_lists.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    content_id: Mapped[str] = mapped_column(String(128), nullable=False)
    content_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        doc="``Movie`` or ``TVShow``.",
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
