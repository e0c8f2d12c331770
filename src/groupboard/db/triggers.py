# src/groupboard/db/triggers.py
"""Storage triggers that run inside the writing transaction.

* Vote recount: after every flush that inserts, updates or deletes votes,
  both counters of each affected announcement are recomputed from the vote
  table. Nothing else writes those counters.
* Admin retention: at commit, every group created in the transaction must
  have an admin, and every surviving group whose memberships changed must
  still have one. Only deleting the group removes its last admin.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from itertools import chain
from typing import Any

import sqlalchemy as sa
from sqlalchemy import event, inspect
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from groupboard.core.errors import InvariantViolation
from groupboard.models import (
    VOTE_COUNT_COLUMNS,
    Announcement,
    Group,
    GroupMembership,
    GroupRole,
    Vote,
    VoteType,
)

logger = logging.getLogger(__name__)

_RECOUNTED_KEY = "groupboard.recounted_announcements"
_NEW_GROUPS_KEY = "groupboard.new_groups"
_MEMBERSHIP_GROUPS_KEY = "groupboard.membership_groups"

_votes = Vote.__table__
_announcements = Announcement.__table__
_groups = Group.__table__
_memberships = GroupMembership.__table__


def _count_votes(vote_type: VoteType) -> Any:
    return (
        sa.select(sa.func.count())
        .select_from(_votes)
        .where(
            _votes.c.announcement_id == _announcements.c.id,
            _votes.c.vote_type == vote_type,
        )
        .scalar_subquery()
    )


def recount_votes(connection: Connection, announcement_ids: Iterable[str]) -> None:
    """Recompute both vote counters of the given announcements from the vote set."""
    ids = sorted(set(announcement_ids))
    if not ids:
        return
    connection.execute(
        sa.update(_announcements)
        .where(_announcements.c.id.in_(ids))
        .values(
            upvotes_count=_count_votes(VoteType.UPVOTE),
            downvotes_count=_count_votes(VoteType.DOWNVOTE),
        )
    )


def _role_changed(membership: GroupMembership) -> bool:
    return inspect(membership).attrs.role.history.has_changes()


@event.listens_for(Session, "after_flush")
def _after_flush(session: Session, _flush_context: Any) -> None:
    touched_announcements: set[str] = set()
    for obj in chain(session.new, session.dirty, session.deleted):
        if isinstance(obj, Vote):
            touched_announcements.add(obj.announcement_id)
        elif isinstance(obj, Group) and obj in session.new:
            session.info.setdefault(_NEW_GROUPS_KEY, set()).add(obj.id)
        elif isinstance(obj, GroupMembership):
            if obj in session.deleted or (obj in session.dirty and _role_changed(obj)):
                session.info.setdefault(_MEMBERSHIP_GROUPS_KEY, set()).add(obj.group_id)

    if touched_announcements:
        recount_votes(session.connection(), touched_announcements)
        session.info.setdefault(_RECOUNTED_KEY, set()).update(touched_announcements)


@event.listens_for(Session, "after_flush_postexec")
def _expire_recounted(session: Session, _flush_context: Any) -> None:
    recounted = session.info.pop(_RECOUNTED_KEY, None)
    if not recounted:
        return
    for announcement_id in recounted:
        announcement = session.identity_map.get(
            session.identity_key(Announcement, announcement_id)
        )
        if announcement is not None:
            session.expire(announcement, [*VOTE_COUNT_COLUMNS, "updated_at"])


def _admin_count(connection: Connection, group_id: str) -> int | None:
    """Admins of a group, or None when the group no longer exists."""
    exists = connection.execute(
        sa.select(_groups.c.id).where(_groups.c.id == group_id)
    ).first()
    if exists is None:
        return None
    admins = connection.scalar(
        sa.select(sa.func.count())
        .select_from(_memberships)
        .where(
            _memberships.c.group_id == group_id,
            _memberships.c.role == GroupRole.ADMIN,
        )
    )
    return int(admins or 0)


@event.listens_for(Session, "before_commit")
def _verify_admin_retention(session: Session) -> None:
    session.flush()
    new_groups: set[str] = session.info.pop(_NEW_GROUPS_KEY, set())
    changed_groups: set[str] = session.info.pop(_MEMBERSHIP_GROUPS_KEY, set())
    if not new_groups and not changed_groups:
        return

    connection = session.connection()
    for group_id in sorted(new_groups | changed_groups):
        if _admin_count(connection, group_id) == 0:
            logger.warning("Blocked commit leaving group %s without an admin", group_id)
            raise InvariantViolation(
                "A group must always keep at least one admin",
                code="sole_admin",
            )


@event.listens_for(Session, "after_rollback")
def _forget_pending_checks(session: Session) -> None:
    for key in (_RECOUNTED_KEY, _NEW_GROUPS_KEY, _MEMBERSHIP_GROUPS_KEY):
        session.info.pop(key, None)
