# src/groupboard/services/platform_admin.py
"""Platform-admin role management and platform-wide statistics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from groupboard.authz import resolve_roles
from groupboard.authz.predicates import can_manage_platform_admins, can_review_groups
from groupboard.core.errors import Conflict, InvariantViolation, NotFound
from groupboard.core.settings import settings
from groupboard.models import (
    Actor,
    Announcement,
    Group,
    GroupMembership,
    PlatformRole,
    Vote,
)

logger = logging.getLogger(__name__)

__all__ = [
    "GroupActivity",
    "PlatformAdminView",
    "SystemStatistics",
    "grant_platform_admin",
    "list_platform_admins",
    "platform_status",
    "revoke_platform_admin",
    "system_statistics",
    "group_activity",
]


@dataclass(frozen=True)
class PlatformAdminView:
    actor_id: str
    email: str | None
    granted_by: str | None
    granted_at: datetime


@dataclass(frozen=True)
class SystemStatistics:
    total_groups: int
    pending_groups: int
    approved_groups: int
    rejected_groups: int
    total_announcements: int
    total_memberships: int
    active_users: int
    total_votes: int


@dataclass(frozen=True)
class GroupActivity:
    group_id: str
    name: str
    member_count: int
    announcement_count: int
    total_votes: int
    last_announcement_at: datetime | None


def grant_platform_admin(db: Session, platform_admin: Actor, target_actor_id: str) -> PlatformRole:
    can_manage_platform_admins(resolve_roles(db, platform_admin.id)).require()
    if db.get(Actor, target_actor_id) is None:
        raise NotFound("User not found")
    if db.get(PlatformRole, target_actor_id) is not None:
        raise Conflict("User is already a platform admin")

    role = PlatformRole(actor_id=target_actor_id, granted_by=platform_admin.id)
    db.add(role)
    db.commit()
    logger.info("Platform admin granted to %s by %s", target_actor_id, platform_admin.id)
    return role


def revoke_platform_admin(db: Session, platform_admin: Actor, target_actor_id: str) -> None:
    """Remove the platform-admin role. Admins cannot revoke themselves."""
    can_manage_platform_admins(resolve_roles(db, platform_admin.id)).require()
    if target_actor_id == platform_admin.id:
        raise InvariantViolation("You cannot revoke your own platform admin role", code="self_revoke")
    role = db.get(PlatformRole, target_actor_id)
    if role is None:
        raise NotFound("User is not a platform admin")

    db.delete(role)
    db.commit()
    logger.info("Platform admin revoked from %s by %s", target_actor_id, platform_admin.id)


def list_platform_admins(db: Session, platform_admin: Actor) -> list[PlatformAdminView]:
    can_manage_platform_admins(resolve_roles(db, platform_admin.id)).require()
    rows = db.execute(
        select(PlatformRole, Actor.email)
        .outerjoin(Actor, Actor.id == PlatformRole.actor_id)
        .order_by(PlatformRole.granted_at)
    ).all()
    return [
        PlatformAdminView(
            actor_id=role.actor_id,
            email=email,
            granted_by=role.granted_by,
            granted_at=role.granted_at,
        )
        for role, email in rows
    ]


def platform_status(db: Session, actor: Actor) -> dict[str, bool]:
    return {"is_platform_admin": resolve_roles(db, actor.id).is_platform_admin}


def _count(db: Session, model: type, *criteria) -> int:
    return db.scalar(select(func.count()).select_from(model).where(*criteria)) or 0


def system_statistics(db: Session, platform_admin: Actor) -> SystemStatistics:
    can_review_groups(resolve_roles(db, platform_admin.id)).require()
    return SystemStatistics(
        total_groups=_count(db, Group),
        pending_groups=_count(db, Group, Group.approved.is_(False), Group.rejected_at.is_(None)),
        approved_groups=_count(db, Group, Group.approved.is_(True)),
        rejected_groups=_count(db, Group, Group.rejected_at.is_not(None)),
        total_announcements=_count(db, Announcement),
        total_memberships=_count(db, GroupMembership),
        active_users=db.scalar(
            select(func.count(func.distinct(GroupMembership.user_id)))
        ) or 0,
        total_votes=_count(db, Vote),
    )


def group_activity(
    db: Session,
    platform_admin: Actor,
    limit: int | None = None,
) -> list[GroupActivity]:
    """Per-group activity, most recently active first."""
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
    votes = (
        select(func.coalesce(func.sum(Announcement.upvotes_count + Announcement.downvotes_count), 0))
        .where(Announcement.group_id == Group.id)
        .correlate(Group)
        .scalar_subquery()
    )
    last_posted = (
        select(func.max(Announcement.created_at))
        .where(Announcement.group_id == Group.id)
        .correlate(Group)
        .scalar_subquery()
    )
    stmt = (
        select(Group.id, Group.name, members, announcements, votes, last_posted.label("last_posted"))
        .order_by(last_posted.desc().nulls_last(), Group.created_at.desc())
        .limit(limit or settings.group_activity_limit)
    )
    return [
        GroupActivity(
            group_id=group_id,
            name=name,
            member_count=member_count or 0,
            announcement_count=announcement_count or 0,
            total_votes=total_votes or 0,
            last_announcement_at=last_at,
        )
        for group_id, name, member_count, announcement_count, total_votes, last_at in db.execute(
            stmt
        ).all()
    ]
