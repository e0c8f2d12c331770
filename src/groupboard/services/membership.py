# src/groupboard/services/membership.py
"""Joining, leaving and managing group members."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from groupboard.authz import resolve_group_role
from groupboard.authz.predicates import (
    can_assign_role,
    can_change_member_role,
    can_manage_members,
    can_view_group,
)
from groupboard.core.errors import Conflict, InvariantViolation, NotFound
from groupboard.db.row_security import system_operation
from groupboard.models import Actor, Group, GroupMembership, GroupRole

from .access import admin_count, get_membership, load_group, roles_in_group
from .lifecycle import find_group_by_code

logger = logging.getLogger(__name__)

__all__ = [
    "MemberView",
    "add_member",
    "join_group",
    "leave_group",
    "list_members",
    "remove_member",
    "update_member_role",
]

# Pending, rejected and unknown codes must be indistinguishable.
GROUP_DOES_NOT_EXIST = "Group does not exist"
SOLE_ADMIN = "A group must always keep at least one admin"


@dataclass(frozen=True)
class MemberView:
    user_id: str
    email: str | None
    role: GroupRole
    joined_at: datetime


def join_group(db: Session, actor: Actor, code: str) -> Group:
    """Join the approved group identified by ``code`` as a plain member."""
    group = find_group_by_code(db, code)
    if group is None:
        raise NotFound(GROUP_DOES_NOT_EXIST)
    if group.creator_id == actor.id:
        raise Conflict("You are the owner of this group and already a member")

    existing = get_membership(db, group.id, actor.id)
    if existing is not None:
        raise Conflict(f"You are already a {GroupRole(existing.role).value} of this group")
    if not group.approved:
        raise NotFound(GROUP_DOES_NOT_EXIST)

    db.add(GroupMembership(group_id=group.id, user_id=actor.id, role=GroupRole.MEMBER))
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise Conflict("You are already a member of this group") from err

    logger.info("Actor %s joined group %s", actor.id, group.id)
    return group


def _require_sole_admin_kept(db: Session, membership: GroupMembership) -> None:
    if membership.role == GroupRole.ADMIN and admin_count(db, membership.group_id) <= 1:
        raise InvariantViolation(SOLE_ADMIN, code="sole_admin")


def leave_group(db: Session, actor: Actor, group_id: str) -> None:
    """Remove the actor's own membership. The last admin cannot leave."""
    membership = get_membership(db, group_id, actor.id)
    if membership is None:
        raise NotFound("You are not a member of this group")
    _require_sole_admin_kept(db, membership)

    db.delete(membership)
    db.commit()
    logger.info("Actor %s left group %s", actor.id, group_id)


def list_members(db: Session, actor: Actor, group_id: str) -> list[MemberView]:
    """Members with their email, admins first, then contributors, then members."""
    group = load_group(db, group_id)
    if not can_view_group(*roles_in_group(db, actor, group.id)):
        raise NotFound("Group not found")

    role_rank = case(
        (GroupMembership.role == GroupRole.ADMIN, 0),
        (GroupMembership.role == GroupRole.CONTRIBUTOR, 1),
        else_=2,
    )
    rows = db.execute(
        select(GroupMembership, Actor.email)
        .outerjoin(Actor, Actor.id == GroupMembership.user_id)
        .where(GroupMembership.group_id == group.id)
        .order_by(role_rank, GroupMembership.joined_at)
    ).all()
    return [
        MemberView(
            user_id=membership.user_id,
            email=email,
            role=GroupRole(membership.role),
            joined_at=membership.joined_at,
        )
        for membership, email in rows
    ]


def add_member(
    db: Session,
    actor: Actor,
    group_id: str,
    user_id: str,
    role: GroupRole = GroupRole.MEMBER,
) -> GroupMembership:
    group = load_group(db, group_id)
    can_manage_members(*roles_in_group(db, actor, group.id)).require()
    can_assign_role(role).require()
    if not group.approved:
        raise Conflict("Members can only be added to approved groups")

    # The target usually shares no group with the caller yet.
    with system_operation(db, "member lookup"):
        target_exists = db.get(Actor, user_id) is not None
    if not target_exists:
        raise NotFound("User not found")
    if get_membership(db, group.id, user_id) is not None:
        raise Conflict("User is already a member of this group")

    membership = GroupMembership(group_id=group.id, user_id=user_id, role=role)
    db.add(membership)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise Conflict("User is already a member of this group") from err

    logger.info("Actor %s added %s to group %s as %s", actor.id, user_id, group.id, role.value)
    return membership


def update_member_role(
    db: Session,
    actor: Actor,
    group_id: str,
    user_id: str,
    new_role: GroupRole,
) -> GroupMembership:
    """Change a member's role to contributor or member.

    Checks run in a fixed order: caller is admin, target is not the caller,
    the role is assignable, the target is a member, the last admin is kept.
    """
    group = load_group(db, group_id)
    can_change_member_role(resolve_group_role(db, actor.id, group.id)).require()
    if user_id == actor.id:
        raise InvariantViolation("You cannot change your own role", code="self_change")
    can_assign_role(new_role).require()

    membership = get_membership(db, group.id, user_id)
    if membership is None:
        raise NotFound("Member not found")
    if membership.role == new_role:
        return membership
    _require_sole_admin_kept(db, membership)

    old_role = GroupRole(membership.role)
    membership.role = new_role
    db.commit()
    logger.info(
        "Actor %s changed role of %s in group %s from %s to %s",
        actor.id,
        user_id,
        group.id,
        old_role.value,
        new_role.value,
    )
    return membership


def remove_member(db: Session, actor: Actor, group_id: str, user_id: str) -> None:
    group = load_group(db, group_id)
    can_manage_members(*roles_in_group(db, actor, group.id)).require()
    if user_id == actor.id:
        raise InvariantViolation("Use leave to remove yourself from a group", code="self_change")

    membership = get_membership(db, group.id, user_id)
    if membership is None:
        raise NotFound("Member not found")
    _require_sole_admin_kept(db, membership)

    db.delete(membership)
    db.commit()
    logger.info("Actor %s removed %s from group %s", actor.id, user_id, group.id)
