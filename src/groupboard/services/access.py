# src/groupboard/services/access.py
"""Loading helpers shared by the services.

Lookups run through the actor-bound session, so a row the actor may not see
is indistinguishable from a missing one and both surface as ``NotFound``.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from groupboard.authz import GroupRoleResolution, ResolvedRoles, resolve_group_role, resolve_roles
from groupboard.core.errors import NotFound
from groupboard.models import Actor, Announcement, Group, GroupMembership, GroupRole, Tag

__all__ = [
    "admin_count",
    "get_membership",
    "load_announcement",
    "load_group",
    "load_tag",
    "roles_in_group",
]


def load_group(db: Session, group_id: str) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise NotFound("Group not found")
    return group


def load_announcement(db: Session, announcement_id: str) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFound("Announcement not found")
    return announcement


def load_tag(db: Session, tag_id: str) -> Tag:
    tag = db.get(Tag, tag_id)
    if tag is None:
        raise NotFound("Tag not found")
    return tag


def roles_in_group(
    db: Session,
    actor: Actor,
    group_id: str,
) -> tuple[ResolvedRoles, GroupRoleResolution]:
    """Resolve the actor's platform role and their role in ``group_id``."""
    return resolve_roles(db, actor.id), resolve_group_role(db, actor.id, group_id)


def get_membership(db: Session, group_id: str, user_id: str) -> GroupMembership | None:
    return db.scalars(
        select(GroupMembership).where(
            GroupMembership.group_id == group_id,
            GroupMembership.user_id == user_id,
        )
    ).first()


def admin_count(db: Session, group_id: str) -> int:
    """Number of admins in ``group_id`` as visible to the session."""
    return db.scalar(
        select(func.count())
        .select_from(GroupMembership)
        .where(
            GroupMembership.group_id == group_id,
            GroupMembership.role == GroupRole.ADMIN,
        )
    ) or 0
