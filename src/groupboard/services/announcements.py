# src/groupboard/services/announcements.py
"""Announcement CRUD, listing, pinning and archiving."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from groupboard.authz import GroupRoleResolution, ResolvedRoles
from groupboard.authz.predicates import (
    AnnouncementPermissions,
    can_archive_announcement,
    can_create_announcement,
    can_modify_announcement,
    can_pin_announcement,
    can_view_announcement,
    can_view_group,
)
from groupboard.authz.predicates import announcement_permissions as summarize_permissions
from groupboard.core.errors import NotFound
from groupboard.core.settings import settings
from groupboard.models import Actor, Announcement, AnnouncementTag, Tag, Vote, VoteType

from .access import load_announcement, load_group, roles_in_group
from .tags import attach_tags

logger = logging.getLogger(__name__)

__all__ = [
    "AnnouncementPage",
    "AnnouncementView",
    "SortField",
    "SortOrder",
    "announcement_permissions",
    "create_announcement",
    "delete_announcement",
    "get_announcement",
    "list_announcements",
    "list_pinned_announcements",
    "set_archived",
    "toggle_pin",
    "update_announcement",
]

# Marks "argument not given" where None is a meaningful value.
_UNSET: object = object()


class SortField(str, Enum):
    CREATED_AT = "created_at"
    DEADLINE = "deadline"


class SortOrder(str, Enum):
    DESC = "desc"
    ASC = "asc"


@dataclass(frozen=True)
class AnnouncementView:
    """An announcement decorated with the caller's vote and its tags."""

    announcement: Announcement
    user_vote: VoteType | None = None
    tags: Sequence[Tag] = field(default_factory=tuple)


@dataclass(frozen=True)
class AnnouncementPage:
    items: list[AnnouncementView]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


def _user_votes(db: Session, actor_id: str, announcement_ids: Iterable[str]) -> dict[str, VoteType]:
    ids = list(announcement_ids)
    if not ids:
        return {}
    rows = db.execute(
        select(Vote.announcement_id, Vote.vote_type).where(
            Vote.announcement_id.in_(ids),
            Vote.user_id == actor_id,
        )
    ).all()
    return {announcement_id: VoteType(vote_type) for announcement_id, vote_type in rows}


def _tags_by_announcement(db: Session, announcement_ids: Iterable[str]) -> dict[str, list[Tag]]:
    ids = list(announcement_ids)
    if not ids:
        return {}
    rows = db.execute(
        select(AnnouncementTag.announcement_id, Tag)
        .join(Tag, Tag.id == AnnouncementTag.tag_id)
        .where(AnnouncementTag.announcement_id.in_(ids))
        .order_by(Tag.title)
    ).all()
    tags: dict[str, list[Tag]] = {}
    for announcement_id, tag in rows:
        tags.setdefault(announcement_id, []).append(tag)
    return tags


def _views(db: Session, actor: Actor, announcements: Sequence[Announcement]) -> list[AnnouncementView]:
    ids = [announcement.id for announcement in announcements]
    votes = _user_votes(db, actor.id, ids)
    tags = _tags_by_announcement(db, ids)
    return [
        AnnouncementView(
            announcement=announcement,
            user_vote=votes.get(announcement.id),
            tags=tuple(tags.get(announcement.id, ())),
        )
        for announcement in announcements
    ]


def _visible(
    db: Session,
    actor: Actor,
    announcement_id: str,
) -> tuple[Announcement, ResolvedRoles, GroupRoleResolution]:
    announcement = load_announcement(db, announcement_id)
    roles, membership = roles_in_group(db, actor, announcement.group_id)
    if not can_view_announcement(roles, membership, announcement):
        raise NotFound("Announcement not found")
    return announcement, roles, membership


def create_announcement(
    db: Session,
    actor: Actor,
    group_id: str,
    title: str,
    content: str,
    deadline: datetime | None = None,
    tag_ids: Sequence[str] = (),
) -> AnnouncementView:
    group = load_group(db, group_id)
    roles, membership = roles_in_group(db, actor, group.id)
    can_create_announcement(roles, membership, group).require()

    announcement = Announcement(
        group_id=group.id,
        author_id=actor.id,
        title=title.strip(),
        content=content,
        deadline=deadline,
    )
    db.add(announcement)
    if tag_ids:
        # Flush first so the tag links can reference the new row.
        db.flush()
        attach_tags(db, announcement, tag_ids)
    db.commit()
    logger.info("Announcement %s created in group %s by %s", announcement.id, group.id, actor.id)
    return _views(db, actor, [announcement])[0]


def get_announcement(db: Session, actor: Actor, announcement_id: str) -> AnnouncementView:
    announcement, _, _ = _visible(db, actor, announcement_id)
    return _views(db, actor, [announcement])[0]


def list_announcements(
    db: Session,
    actor: Actor,
    group_id: str,
    page: int = 1,
    page_size: int | None = None,
    sort_by: SortField = SortField.CREATED_AT,
    order: SortOrder = SortOrder.DESC,
    tag_id: str | None = None,
    include_archived: bool = False,
) -> AnnouncementPage:
    """Page through a group's announcements, pinned first.

    Archived announcements are included only when requested by a group admin
    or platform admin.
    """
    group = load_group(db, group_id)
    roles, membership = roles_in_group(db, actor, group.id)
    if not can_view_group(roles, membership):
        raise NotFound("Group not found")

    page = max(page, 1)
    size = min(
        max(page_size or settings.announcements_page_size, 1),
        settings.announcements_max_page_size,
    )

    stmt = select(Announcement).where(Announcement.group_id == group.id)
    if not (include_archived and (membership.is_admin or roles.is_platform_admin)):
        stmt = stmt.where(Announcement.is_archived.is_(False))
    if tag_id is not None:
        stmt = stmt.where(
            select(AnnouncementTag.announcement_id)
            .where(
                AnnouncementTag.announcement_id == Announcement.id,
                AnnouncementTag.tag_id == tag_id,
            )
            .exists()
        )

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    sort_column = Announcement.deadline if sort_by is SortField.DEADLINE else Announcement.created_at
    ordering = sort_column.asc() if order is SortOrder.ASC else sort_column.desc()
    rows = db.scalars(
        stmt.order_by(Announcement.is_pinned.desc(), ordering.nulls_last(), Announcement.id)
        .offset((page - 1) * size)
        .limit(size)
    ).all()
    return AnnouncementPage(items=_views(db, actor, rows), total=total, page=page, page_size=size)


def list_pinned_announcements(db: Session, actor: Actor, group_id: str) -> list[AnnouncementView]:
    group = load_group(db, group_id)
    if not can_view_group(*roles_in_group(db, actor, group.id)):
        raise NotFound("Group not found")
    rows = db.scalars(
        select(Announcement)
        .where(
            Announcement.group_id == group.id,
            Announcement.is_pinned.is_(True),
            Announcement.is_archived.is_(False),
        )
        .order_by(Announcement.created_at.desc())
    ).all()
    return _views(db, actor, rows)


def update_announcement(
    db: Session,
    actor: Actor,
    announcement_id: str,
    *,
    title: str | None = None,
    content: str | None = None,
    deadline: datetime | None | object = _UNSET,
    is_pinned: bool | None = None,
    is_archived: bool | None = None,
) -> AnnouncementView:
    """Edit an announcement.

    Content fields need the author (as contributor or admin) or a group
    admin. Pin and archive flags need a group admin; asking for them without
    that role fails instead of being dropped.
    """
    announcement, roles, membership = _visible(db, actor, announcement_id)
    content_change = title is not None or content is not None or deadline is not _UNSET
    if content_change:
        can_modify_announcement(roles, membership, announcement).require()
    if is_pinned is not None:
        can_pin_announcement(roles, membership).require()
    if is_archived is not None:
        can_archive_announcement(roles, membership).require()

    if title is not None:
        announcement.title = title.strip()
    if content is not None:
        announcement.content = content
    if deadline is not _UNSET:
        announcement.deadline = deadline  # type: ignore[assignment]
    if is_pinned is not None:
        announcement.is_pinned = is_pinned
    if is_archived is not None:
        announcement.is_archived = is_archived
    db.commit()
    logger.info("Announcement %s updated by %s", announcement.id, actor.id)
    return _views(db, actor, [announcement])[0]


def toggle_pin(db: Session, actor: Actor, announcement_id: str) -> AnnouncementView:
    announcement, roles, membership = _visible(db, actor, announcement_id)
    can_pin_announcement(roles, membership).require()
    announcement.is_pinned = not announcement.is_pinned
    db.commit()
    logger.info(
        "Announcement %s %s by %s",
        announcement.id,
        "pinned" if announcement.is_pinned else "unpinned",
        actor.id,
    )
    return _views(db, actor, [announcement])[0]


def set_archived(
    db: Session,
    actor: Actor,
    announcement_id: str,
    archived: bool = True,
) -> AnnouncementView:
    announcement, roles, membership = _visible(db, actor, announcement_id)
    can_archive_announcement(roles, membership).require()
    announcement.is_archived = archived
    db.commit()
    logger.info(
        "Announcement %s %s by %s",
        announcement.id,
        "archived" if archived else "restored",
        actor.id,
    )
    return _views(db, actor, [announcement])[0]


def delete_announcement(db: Session, actor: Actor, announcement_id: str) -> None:
    announcement, roles, membership = _visible(db, actor, announcement_id)
    can_modify_announcement(roles, membership, announcement).require()
    db.delete(announcement)
    db.commit()
    logger.info("Announcement %s deleted by %s", announcement_id, actor.id)


def announcement_permissions(
    db: Session,
    actor: Actor,
    announcement_id: str,
) -> AnnouncementPermissions:
    announcement, roles, membership = _visible(db, actor, announcement_id)
    return summarize_permissions(roles, membership, announcement)
