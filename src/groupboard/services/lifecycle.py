# src/groupboard/services/lifecycle.py
"""Group lifecycle: creation, review and the group-level CRUD around it.

A group is created pending with its creator as sole admin. A platform admin
then approves or rejects it; both outcomes are terminal. The one-way rules
are also guarded by the storage layer, so this module only has to turn the
illegal cases into precise errors.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from groupboard.authz import resolve_roles
from groupboard.authz.predicates import can_manage_group, can_review_groups, can_view_group
from groupboard.core.errors import Conflict, InvariantViolation, NotFound, StoreFailure
from groupboard.core.settings import settings
from groupboard.db.ids import new_id
from groupboard.db.row_security import system_operation
from groupboard.db.time import utcnow
from groupboard.models import (
    Actor,
    Announcement,
    Group,
    GroupMembership,
    GroupRole,
    GroupState,
)

from .access import load_group, roles_in_group

logger = logging.getLogger(__name__)

__all__ = [
    "CODE_ALPHABET",
    "GroupSummary",
    "GroupView",
    "PendingGroup",
    "approve_group",
    "bootstrap_admin_membership",
    "create_group",
    "create_group_as_admin",
    "delete_group",
    "find_group_by_code",
    "generate_group_code",
    "get_group",
    "list_all_groups",
    "list_my_groups",
    "list_pending_groups",
    "reject_group",
    "update_group",
]

# No 0/O or 1/I, so codes survive being read aloud.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


@dataclass(frozen=True)
class GroupView:
    """A group together with the caller's role in it, if any."""

    group: Group
    role: GroupRole | None = None


@dataclass(frozen=True)
class PendingGroup:
    group: Group
    creator_email: str | None
    admin_count: int


@dataclass(frozen=True)
class GroupSummary:
    group: Group
    member_count: int
    announcement_count: int


def generate_group_code(length: int | None = None) -> str:
    """Return a random join code drawn from :data:`CODE_ALPHABET`."""
    size = length or settings.group_code_length
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(size))


def _code_taken(db: Session, code: str) -> bool:
    # Codes are global, so the probe must see groups the actor cannot.
    with system_operation(db, "group code uniqueness probe"):
        return db.scalar(select(Group.id).where(Group.code == code)) is not None


def bootstrap_admin_membership(db: Session, group: Group, admin_id: str) -> GroupMembership:
    """Insert the first admin membership of a freshly created group.

    The actor is not a member yet, so no regular policy would allow the
    insert; it runs as a system operation inside the creating transaction.
    """
    membership = GroupMembership(group_id=group.id, user_id=admin_id, role=GroupRole.ADMIN)
    with system_operation(db, f"bootstrap admin of group {group.id}"):
        db.add(membership)
    return membership


def _insert_group(
    db: Session,
    creator_id: str,
    name: str,
    description: str | None,
    admin_id: str,
) -> Group:
    for attempt in range(1, settings.group_code_max_attempts + 1):
        code = generate_group_code()
        if _code_taken(db, code):
            continue

        group = Group(
            id=new_id(),
            creator_id=creator_id,
            name=name.strip(),
            description=description,
            code=code,
        )
        db.add(group)
        try:
            bootstrap_admin_membership(db, group, admin_id)
            db.commit()
        except IntegrityError as err:
            db.rollback()
            if not _code_taken(db, code):
                logger.exception("Group insert failed for creator %s", creator_id)
                raise StoreFailure() from err
            logger.info("Group code collision on attempt %d, retrying", attempt)
            continue
        return group

    logger.error(
        "Could not allocate a unique group code after %d attempts",
        settings.group_code_max_attempts,
    )
    raise StoreFailure("Could not allocate a unique group code")


def create_group(
    db: Session,
    actor: Actor,
    name: str,
    description: str | None = None,
) -> Group:
    """Create a pending group with ``actor`` as its admin."""
    group = _insert_group(db, actor.id, name, description, admin_id=actor.id)
    logger.info("Group %s created by %s, awaiting review", group.id, actor.id)
    return group


def create_group_as_admin(
    db: Session,
    platform_admin: Actor,
    name: str,
    description: str | None = None,
    admin_actor_id: str | None = None,
) -> Group:
    """Create a group on behalf of ``admin_actor_id``.

    This is the only path that makes someone other than the creator the
    first group admin. The group still starts pending.
    """
    can_review_groups(resolve_roles(db, platform_admin.id)).require()
    admin_id = admin_actor_id or platform_admin.id
    if admin_id != platform_admin.id and db.get(Actor, admin_id) is None:
        raise NotFound("User not found")

    group = _insert_group(db, platform_admin.id, name, description, admin_id=admin_id)
    logger.info(
        "Group %s created by platform admin %s with admin %s",
        group.id,
        platform_admin.id,
        admin_id,
    )
    return group


def approve_group(db: Session, platform_admin: Actor, group_id: str) -> Group:
    can_review_groups(resolve_roles(db, platform_admin.id)).require()
    group = load_group(db, group_id)
    if group.approved:
        raise Conflict("Group is already approved")
    if group.rejected_at is not None:
        raise InvariantViolation("A rejected group cannot be approved", code="lifecycle")

    group.approved = True
    group.approved_at = utcnow()
    group.approved_by = platform_admin.id
    db.commit()
    logger.info("Group %s approved by %s", group.id, platform_admin.id)
    return group


def reject_group(db: Session, platform_admin: Actor, group_id: str) -> Group:
    """Mark a pending group rejected. Rejected groups are kept, never deleted."""
    can_review_groups(resolve_roles(db, platform_admin.id)).require()
    group = load_group(db, group_id)
    if group.rejected_at is not None:
        raise Conflict("Group is already rejected")
    if group.approved:
        raise InvariantViolation("An approved group cannot be rejected", code="lifecycle")

    group.rejected_at = utcnow()
    group.rejected_by = platform_admin.id
    db.commit()
    logger.info("Group %s rejected by %s", group.id, platform_admin.id)
    return group


def _admin_count_subquery():
    return (
        select(func.count())
        .select_from(GroupMembership)
        .where(
            GroupMembership.group_id == Group.id,
            GroupMembership.role == GroupRole.ADMIN,
        )
        .correlate(Group)
        .scalar_subquery()
    )


def list_pending_groups(db: Session, platform_admin: Actor) -> list[PendingGroup]:
    """Review queue: groups neither approved nor rejected, newest first."""
    can_review_groups(resolve_roles(db, platform_admin.id)).require()
    rows = db.execute(
        select(Group, Actor.email, _admin_count_subquery())
        .outerjoin(Actor, Actor.id == Group.creator_id)
        .where(Group.approved.is_(False), Group.rejected_at.is_(None))
        .order_by(Group.created_at.desc())
    ).all()
    return [
        PendingGroup(group=group, creator_email=email, admin_count=admins or 0)
        for group, email, admins in rows
    ]


def list_all_groups(
    db: Session,
    platform_admin: Actor,
    state: GroupState | None = None,
) -> list[GroupSummary]:
    can_review_groups(resolve_roles(db, platform_admin.id)).require()
    members = (
        select(func.count())
        .select_from(GroupMembership)
        .where(GroupMembership.group_id == Group.id)
        .correlate(Group)
        .scalar_subquery()
    )
    announcements = (
        select(func.count())
        .select_from(Announcement)
        .where(Announcement.group_id == Group.id)
        .correlate(Group)
        .scalar_subquery()
    )
    stmt = select(Group, members, announcements).order_by(Group.created_at.desc())
    if state is GroupState.APPROVED:
        stmt = stmt.where(Group.approved.is_(True))
    elif state is GroupState.REJECTED:
        stmt = stmt.where(Group.rejected_at.is_not(None))
    elif state is GroupState.PENDING:
        stmt = stmt.where(Group.approved.is_(False), Group.rejected_at.is_(None))

    return [
        GroupSummary(group=group, member_count=member_count or 0, announcement_count=count or 0)
        for group, member_count, count in db.execute(stmt).all()
    ]


def get_group(db: Session, actor: Actor, group_id: str) -> GroupView:
    group = load_group(db, group_id)
    roles, membership = roles_in_group(db, actor, group.id)
    if not can_view_group(roles, membership):
        raise NotFound("Group not found")
    return GroupView(group=group, role=membership.role)


def list_my_groups(db: Session, actor: Actor) -> list[GroupView]:
    """Groups the actor belongs to, in any lifecycle state, newest first."""
    rows = db.execute(
        select(Group, GroupMembership.role)
        .join(GroupMembership, GroupMembership.group_id == Group.id)
        .where(GroupMembership.user_id == actor.id)
        .order_by(Group.created_at.desc())
    ).all()
    return [GroupView(group=group, role=GroupRole(role)) for group, role in rows]


def update_group(
    db: Session,
    actor: Actor,
    group_id: str,
    name: str | None = None,
    description: str | None = None,
) -> Group:
    group = load_group(db, group_id)
    can_manage_group(*roles_in_group(db, actor, group.id)).require()
    if name is not None:
        group.name = name.strip()
    if description is not None:
        group.description = description
    db.commit()
    logger.info("Group %s updated by %s", group.id, actor.id)
    return group


def delete_group(db: Session, actor: Actor, group_id: str) -> None:
    """Hard-delete a group; memberships, announcements and tags cascade."""
    group = load_group(db, group_id)
    can_manage_group(*roles_in_group(db, actor, group.id)).require()
    db.delete(group)
    db.commit()
    logger.info("Group %s deleted by %s", group_id, actor.id)


def find_group_by_code(db: Session, code: str) -> Group | None:
    """Look a group up by join code, whatever its state or the caller's access.

    Only the join flow may use this; it is responsible for hiding pending and
    rejected groups behind the same error as a missing code.
    """
    normalized = code.strip().upper()
    if not normalized:
        return None
    with system_operation(db, "join code lookup"):
        return db.scalars(select(Group).where(Group.code == normalized)).first()
