# src/groupboard/models/announcement.py
"""Announcements posted inside groups."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from groupboard.db.ids import new_id
from groupboard.db.session import Base
from groupboard.db.time import utcnow

# Columns only the vote recount trigger may write.
VOTE_COUNT_COLUMNS = ("upvotes_count", "downvotes_count")


class Announcement(Base):
    """A role-gated post belonging to exactly one group.

    ``upvotes_count`` and ``downvotes_count`` are a projection of the vote
    table, recomputed on every vote write.
    """

    __tablename__ = "announcement"
    __table_args__ = (
        CheckConstraint(
            "length(title) >= 3 AND length(title) <= 200",
            name="ck_announcement_title_length",
        ),
        CheckConstraint(
            "length(content) >= 1 AND length(content) <= 50000",
            name="ck_announcement_content_length",
        ),
        CheckConstraint(
            "upvotes_count >= 0 AND downvotes_count >= 0",
            name="ck_announcement_counts_non_negative",
        ),
        Index("ix_announcement_group_id", "group_id"),
        Index("ix_announcement_author_id", "author_id"),
        Index("ix_announcement_group_pinned", "group_id", "is_pinned", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Markdown; rendering happens client-side.
    content: Mapped[str] = mapped_column(Text, nullable=False)
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    upvotes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
