# src/groupboard/models/vote.py
"""Models capturing voting interactions on announcements."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from groupboard.db.ids import new_id
from groupboard.db.session import Base
from groupboard.db.time import utcnow


class VoteType(str, enum.Enum):
    """Direction of a vote."""

    UPVOTE = "upvote"
    DOWNVOTE = "downvote"

    @property
    def opposite(self) -> "VoteType":
        return VoteType.DOWNVOTE if self is VoteType.UPVOTE else VoteType.UPVOTE


class Vote(Base):
    """Per-actor vote on an announcement."""

    __tablename__ = "vote"
    __table_args__ = (
        # One vote per actor per announcement; races fall back to the update path.
        UniqueConstraint("announcement_id", "user_id", name="uq_vote_announcement_user"),
        Index("ix_vote_announcement_id", "announcement_id"),
        Index("ix_vote_user_id", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    announcement_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("announcement.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="CASCADE"),
        nullable=False,
    )
    vote_type: Mapped[VoteType] = mapped_column(
        Enum(
            VoteType,
            name="vote_type",
            native_enum=False,
            create_constraint=True,
            length=16,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
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
        onupdate=utcnow,
    )
