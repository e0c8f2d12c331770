# src/groupboard/models/actor.py
"""Identities provisioned from the external identity provider."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from groupboard.db.session import Base
from groupboard.db.time import utcnow


class Actor(Base):
    """An authenticated identity.

    The id is the identity provider's subject; the core never changes or
    deletes actors.
    """

    __tablename__ = "actor"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
