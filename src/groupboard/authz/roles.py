# src/groupboard/authz/roles.py
"""Resolve an actor's platform role and group role."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from groupboard.models import GroupMembership, GroupRole, PlatformRole


@dataclass(frozen=True)
class ResolvedRoles:
    """Platform-level roles of one actor."""

    actor_id: str
    is_platform_admin: bool = False


@dataclass(frozen=True)
class GroupRoleResolution:
    """An actor's standing inside one group."""

    is_member: bool = False
    role: GroupRole | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is GroupRole.ADMIN

    @property
    def can_author(self) -> bool:
        return self.role in (GroupRole.ADMIN, GroupRole.CONTRIBUTOR)


NOT_A_MEMBER = GroupRoleResolution()


def resolve_roles(db: Session, actor_id: str) -> ResolvedRoles:
    """Return whether ``actor_id`` holds the platform-admin role.

    Reads only the actor's own ``platform_role`` row, which the storage
    policy always lets an actor see.
    """
    role = db.get(PlatformRole, actor_id)
    return ResolvedRoles(actor_id=actor_id, is_platform_admin=role is not None)


def resolve_group_role(db: Session, actor_id: str, group_id: str) -> GroupRoleResolution:
    """Return the actor's membership in ``group_id``; absence is not an error."""
    membership = db.scalars(
        select(GroupMembership).where(
            GroupMembership.group_id == group_id,
            GroupMembership.user_id == actor_id,
        )
    ).first()
    if membership is None:
        return NOT_A_MEMBER
    return GroupRoleResolution(is_member=True, role=GroupRole(membership.role))
