# src/groupboard/models/platform_role.py
"""Platform-level role assignments."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from groupboard.db.session import Base
from groupboard.db.time import utcnow

PLATFORM_ADMIN = "platform_admin"


class PlatformRole(Base):
    """Grants the platform-admin capability to one actor."""

    __tablename__ = "platform_role"
    __table_args__ = (
        CheckConstraint(f"role = '{PLATFORM_ADMIN}'", name="ck_platform_role_role"),
    )

    # Actor id as primary key: at most one platform role per actor.
    actor_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(Text, nullable=False, default=PLATFORM_ADMIN)
    granted_by: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("actor.id", ondelete="SET NULL"),
        nullable=True,
    )
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
