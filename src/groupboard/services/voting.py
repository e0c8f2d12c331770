# src/groupboard/services/voting.py
"""Per-actor voting on announcements.

Each (actor, announcement) pair moves through a small state machine:

    none --cast X--> X
    X    --cast X--> none
    X    --cast Y--> Y

The announcement counters are never touched here. Every vote write is
followed, inside the same flush, by a recount from the vote table (see
:mod:`groupboard.db.triggers`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from groupboard.authz.predicates import can_vote
from groupboard.models import Actor, Announcement, Vote, VoteType

from .access import load_announcement, roles_in_group

logger = logging.getLogger(__name__)

__all__ = ["VoteState", "cast_vote", "get_my_vote", "next_vote"]


@dataclass(frozen=True)
class VoteState:
    """The caller's vote and the announcement's counters after an operation."""

    announcement_id: str
    user_vote: VoteType | None
    upvotes_count: int
    downvotes_count: int


def next_vote(current: VoteType | None, cast: VoteType) -> VoteType | None:
    """Return the vote left after casting ``cast`` on top of ``current``."""
    if current is cast:
        return None
    return cast


def _own_vote(db: Session, announcement_id: str, actor_id: str) -> Vote | None:
    return db.scalars(
        select(Vote).where(Vote.announcement_id == announcement_id, Vote.user_id == actor_id)
    ).first()


def _apply(db: Session, announcement_id: str, actor_id: str, cast: VoteType) -> VoteType | None:
    existing = _own_vote(db, announcement_id, actor_id)
    current = VoteType(existing.vote_type) if existing is not None else None
    target = next_vote(current, cast)

    if existing is None:
        db.add(Vote(announcement_id=announcement_id, user_id=actor_id, vote_type=cast))
    elif target is None:
        db.delete(existing)
    else:
        existing.vote_type = target
    db.commit()
    return target


def _state(announcement: Announcement, user_vote: VoteType | None) -> VoteState:
    return VoteState(
        announcement_id=announcement.id,
        user_vote=user_vote,
        upvotes_count=announcement.upvotes_count,
        downvotes_count=announcement.downvotes_count,
    )


def cast_vote(db: Session, actor: Actor, announcement_id: str, vote_type: VoteType) -> VoteState:
    """Apply one vote transition and return the resulting state."""
    announcement = load_announcement(db, announcement_id)
    can_vote(*roles_in_group(db, actor, announcement.group_id)).require()

    try:
        user_vote = _apply(db, announcement.id, actor.id, vote_type)
    except IntegrityError:
        # A concurrent request inserted this actor's vote first; replay the
        # transition against the row it wrote.
        db.rollback()
        logger.info("Vote race on announcement %s for %s, retrying", announcement.id, actor.id)
        user_vote = _apply(db, announcement.id, actor.id, vote_type)

    db.refresh(announcement)
    return _state(announcement, user_vote)


def get_my_vote(db: Session, actor: Actor, announcement_id: str) -> VoteState:
    announcement = load_announcement(db, announcement_id)
    existing = _own_vote(db, announcement.id, actor.id)
    user_vote = VoteType(existing.vote_type) if existing is not None else None
    return _state(announcement, user_vote)
