# src/groupboard/authz/predicates.py
"""Application-level permission predicates.

Pure decision functions over resolved roles and resource attributes. Each
returns a :class:`Decision`; ``Decision.require()`` raises
:class:`PermissionDenied` naming the minimum role needed. The storage layer
enforces an independent copy of these rules (see
:mod:`groupboard.authz.policies`).
"""

from __future__ import annotations

from dataclasses import dataclass

from groupboard.core.errors import PermissionDenied
from groupboard.models import ASSIGNABLE_ROLES, Announcement, Group, GroupRole

from .roles import GroupRoleResolution, ResolvedRoles

GROUP_ADMIN_REQUIRED = "Requires the admin role in this group"
CONTRIBUTOR_REQUIRED = "Requires the contributor or admin role in this group"
MEMBER_REQUIRED = "Requires membership in this group"
PLATFORM_ADMIN_REQUIRED = "Requires the platform admin role"
AUTHOR_OR_ADMIN_REQUIRED = "Requires being the author (as contributor or admin) or a group admin"


@dataclass(frozen=True)
class Decision:
    """Outcome of a permission check."""

    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed

    def require(self) -> None:
        if not self.allowed:
            raise PermissionDenied(self.reason or PermissionDenied.message)


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


def can_view_group(roles: ResolvedRoles, membership: GroupRoleResolution) -> Decision:
    if roles.is_platform_admin or membership.is_member:
        return ALLOW
    return deny(MEMBER_REQUIRED)


def can_manage_group(roles: ResolvedRoles, membership: GroupRoleResolution) -> Decision:
    """Rename, describe or delete a group."""
    if roles.is_platform_admin or membership.is_admin:
        return ALLOW
    return deny(GROUP_ADMIN_REQUIRED)


def can_manage_members(roles: ResolvedRoles, membership: GroupRoleResolution) -> Decision:
    """Add or remove members of a group."""
    if roles.is_platform_admin or membership.is_admin:
        return ALLOW
    return deny(GROUP_ADMIN_REQUIRED)


def can_change_member_role(membership: GroupRoleResolution) -> Decision:
    """Re-role members. Platform admins hold no override here."""
    if membership.is_admin:
        return ALLOW
    return deny(GROUP_ADMIN_REQUIRED)


def can_assign_role(role: GroupRole) -> Decision:
    """Whether ``role`` may be set through a regular role update."""
    if role in ASSIGNABLE_ROLES:
        return ALLOW
    return deny("The admin role cannot be assigned through a role update")


def can_create_announcement(
    roles: ResolvedRoles,
    membership: GroupRoleResolution,
    group: Group,
) -> Decision:
    if not membership.can_author:
        return deny(CONTRIBUTOR_REQUIRED)
    if not group.approved:
        return deny("Announcements can only be posted in approved groups")
    return ALLOW


def can_view_announcement(
    roles: ResolvedRoles,
    membership: GroupRoleResolution,
    announcement: Announcement,
) -> Decision:
    if roles.is_platform_admin:
        return ALLOW
    if not membership.is_member:
        return deny(MEMBER_REQUIRED)
    if announcement.is_archived and not membership.is_admin:
        return deny(GROUP_ADMIN_REQUIRED)
    return ALLOW


def can_modify_announcement(
    roles: ResolvedRoles,
    membership: GroupRoleResolution,
    announcement: Announcement,
) -> Decision:
    """Edit or delete the announcement's content."""
    if membership.is_admin:
        return ALLOW
    if announcement.author_id == roles.actor_id and membership.can_author:
        return ALLOW
    return deny(AUTHOR_OR_ADMIN_REQUIRED)


def can_pin_announcement(roles: ResolvedRoles, membership: GroupRoleResolution) -> Decision:
    if membership.is_admin:
        return ALLOW
    return deny(GROUP_ADMIN_REQUIRED)


def can_archive_announcement(roles: ResolvedRoles, membership: GroupRoleResolution) -> Decision:
    if membership.is_admin:
        return ALLOW
    return deny(GROUP_ADMIN_REQUIRED)


def can_vote(roles: ResolvedRoles, membership: GroupRoleResolution) -> Decision:
    if roles.is_platform_admin or membership.is_member:
        return ALLOW
    return deny(MEMBER_REQUIRED)


def can_manage_tags(roles: ResolvedRoles, membership: GroupRoleResolution) -> Decision:
    if membership.is_admin:
        return ALLOW
    return deny(GROUP_ADMIN_REQUIRED)


def can_tag_announcement(
    roles: ResolvedRoles,
    membership: GroupRoleResolution,
    announcement: Announcement,
) -> Decision:
    return can_modify_announcement(roles, membership, announcement)


def can_review_groups(roles: ResolvedRoles) -> Decision:
    """Approve, reject or list pending groups."""
    if roles.is_platform_admin:
        return ALLOW
    return deny(PLATFORM_ADMIN_REQUIRED)


def can_manage_platform_admins(roles: ResolvedRoles) -> Decision:
    if roles.is_platform_admin:
        return ALLOW
    return deny(PLATFORM_ADMIN_REQUIRED)


@dataclass(frozen=True)
class AnnouncementPermissions:
    """Capability summary shown next to an announcement."""

    can_edit: bool
    can_delete: bool
    can_pin: bool
    can_archive: bool
    is_author: bool
    is_admin: bool


def announcement_permissions(
    roles: ResolvedRoles,
    membership: GroupRoleResolution,
    announcement: Announcement,
) -> AnnouncementPermissions:
    modify = bool(can_modify_announcement(roles, membership, announcement))
    return AnnouncementPermissions(
        can_edit=modify,
        can_delete=modify,
        can_pin=bool(can_pin_announcement(roles, membership)),
        can_archive=bool(can_archive_announcement(roles, membership)),
        is_author=announcement.author_id == roles.actor_id,
        is_admin=membership.is_admin,
    )
