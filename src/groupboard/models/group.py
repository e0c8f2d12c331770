# src/groupboard/models/group.py
"""Groups, their lifecycle state and memberships."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from groupboard.db.ids import new_id
from groupboard.db.session import Base
from groupboard.db.time import utcnow


class GroupRole(str, enum.Enum):
    """Role an actor holds inside one group."""

    ADMIN = "admin"
    CONTRIBUTOR = "contributor"
    MEMBER = "member"


class GroupState(str, enum.Enum):
    """Lifecycle state derived from the approval columns."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Roles a regular role update may assign; admin is never delegated.
ASSIGNABLE_ROLES = (GroupRole.CONTRIBUTOR, GroupRole.MEMBER)
AUTHOR_ROLES = (GroupRole.ADMIN, GroupRole.CONTRIBUTOR)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Group(Base):
    """A named community joined through a shareable code.

    Groups start pending. A platform admin either approves them (sets
    ``approved``) or rejects them (sets ``rejected_at``); both are terminal.
    """

    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint(
            "length(name) >= 3 AND length(name) <= 100",
            name="ck_groups_name_length",
        ),
        CheckConstraint(
            "NOT (approved AND rejected_at IS NOT NULL)",
            name="ck_groups_single_terminal_state",
        ),
        Index("ix_groups_creator_id", "creator_id"),
        Index("ix_groups_pending", "approved", "rejected_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    creator_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Stored upper-case; lookups are case-insensitive.
    code: Mapped[str] = mapped_column(String(12), nullable=False, unique=True)

    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approved_by: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="SET NULL"),
    )
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_by: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="SET NULL"),
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

    @property
    def state(self) -> GroupState:
        if self.approved:
            return GroupState.APPROVED
        if self.rejected_at is not None:
            return GroupState.REJECTED
        return GroupState.PENDING


class GroupMembership(Base):
    """Binds one actor to one group with exactly one role."""

    __tablename__ = "group_member"
    __table_args__ = (
        Index("ix_group_member_user_id", "user_id"),
    )

    # Composite primary key: one role per (group, actor).
    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[GroupRole] = mapped_column(
        Enum(
            GroupRole,
            name="group_role",
            native_enum=False,
            create_constraint=True,
            length=16,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=GroupRole.MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
