# src/groupboard/models/tag.py
"""Group-scoped tags and their announcement associations."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from groupboard.db.ids import new_id
from groupboard.db.session import Base
from groupboard.db.time import utcnow

DEFAULT_TAG_COLOR = "#3b82f6"


class Tag(Base):
    """Admin-managed label, unique by title within its group."""

    __tablename__ = "tag"
    __table_args__ = (
        UniqueConstraint("group_id", "title", name="uq_tag_group_title"),
        CheckConstraint(
            "length(title) >= 1 AND length(title) <= 50",
            name="ck_tag_title_length",
        ),
        Index("ix_tag_group_id", "group_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Hex colour such as "#3b82f6".
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=DEFAULT_TAG_COLOR)
    created_by: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class AnnouncementTag(Base):
    """Join table attaching tags to announcements of the same group."""

    __tablename__ = "announcement_tag"
    __table_args__ = (
        Index("ix_announcement_tag_tag_id", "tag_id"),
    )

    announcement_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("announcement.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tag.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
