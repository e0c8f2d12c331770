# src/groupboard/services/tags.py
"""Group tags and their attachment to announcements."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from groupboard.authz.predicates import can_manage_tags, can_tag_announcement, can_view_group
from groupboard.core.errors import Conflict, GroupBoardError, NotFound
from groupboard.models import DEFAULT_TAG_COLOR, Actor, Announcement, AnnouncementTag, Tag

from .access import load_announcement, load_group, load_tag, roles_in_group

logger = logging.getLogger(__name__)

__all__ = [
    "TagUsage",
    "attach_tags",
    "create_tag",
    "delete_tag",
    "list_announcement_tags",
    "list_group_tags",
    "set_announcement_tags",
    "update_tag",
]

COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")
DUPLICATE_TITLE = "A tag with this title already exists in this group"


@dataclass(frozen=True)
class TagUsage:
    tag: Tag
    usage_count: int


def _validate_color(color: str) -> str:
    if not COLOR_PATTERN.match(color):
        raise GroupBoardError(
            "Tag color must be a hex value such as #3b82f6",
            code="invalid_color",
        )
    return color


def _title_taken(db: Session, group_id: str, title: str, exclude_id: str | None = None) -> bool:
    stmt = select(Tag.id).where(Tag.group_id == group_id, Tag.title == title)
    if exclude_id is not None:
        stmt = stmt.where(Tag.id != exclude_id)
    return db.scalar(stmt) is not None


def list_group_tags(db: Session, actor: Actor, group_id: str) -> list[TagUsage]:
    group = load_group(db, group_id)
    if not can_view_group(*roles_in_group(db, actor, group.id)):
        raise NotFound("Group not found")
    usage = (
        select(func.count())
        .select_from(AnnouncementTag)
        .where(AnnouncementTag.tag_id == Tag.id)
        .correlate(Tag)
        .scalar_subquery()
    )
    rows = db.execute(
        select(Tag, usage).where(Tag.group_id == group.id).order_by(Tag.title)
    ).all()
    return [TagUsage(tag=tag, usage_count=count or 0) for tag, count in rows]


def create_tag(
    db: Session,
    actor: Actor,
    group_id: str,
    title: str,
    color: str = DEFAULT_TAG_COLOR,
) -> Tag:
    group = load_group(db, group_id)
    can_manage_tags(*roles_in_group(db, actor, group.id)).require()
    title = title.strip()
    _validate_color(color)
    if _title_taken(db, group.id, title):
        raise Conflict(DUPLICATE_TITLE)

    tag = Tag(group_id=group.id, title=title, color=color, created_by=actor.id)
    db.add(tag)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise Conflict(DUPLICATE_TITLE) from err
    logger.info("Tag %s created in group %s by %s", tag.id, group.id, actor.id)
    return tag


def update_tag(
    db: Session,
    actor: Actor,
    tag_id: str,
    title: str | None = None,
    color: str | None = None,
) -> Tag:
    tag = load_tag(db, tag_id)
    can_manage_tags(*roles_in_group(db, actor, tag.group_id)).require()
    if title is not None:
        title = title.strip()
        if _title_taken(db, tag.group_id, title, exclude_id=tag.id):
            raise Conflict(DUPLICATE_TITLE)
        tag.title = title
    if color is not None:
        tag.color = _validate_color(color)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise Conflict(DUPLICATE_TITLE) from err
    return tag


def delete_tag(db: Session, actor: Actor, tag_id: str) -> None:
    tag = load_tag(db, tag_id)
    can_manage_tags(*roles_in_group(db, actor, tag.group_id)).require()
    db.delete(tag)
    db.commit()
    logger.info("Tag %s deleted by %s", tag_id, actor.id)


def attach_tags(db: Session, announcement: Announcement, tag_ids: Sequence[str]) -> None:
    """Add links from ``announcement`` to ``tag_ids`` without committing.

    Every tag must belong to the announcement's group.
    """
    wanted = set(tag_ids)
    if not wanted:
        return
    found = set(
        db.scalars(
            select(Tag.id).where(Tag.id.in_(wanted), Tag.group_id == announcement.group_id)
        ).all()
    )
    if found != wanted:
        raise NotFound("Tag not found")

    existing = set(
        db.scalars(
            select(AnnouncementTag.tag_id).where(
                AnnouncementTag.announcement_id == announcement.id
            )
        ).all()
    )
    for tag_id in sorted(wanted - existing):
        db.add(AnnouncementTag(announcement_id=announcement.id, tag_id=tag_id))


def set_announcement_tags(
    db: Session,
    actor: Actor,
    announcement_id: str,
    tag_ids: Sequence[str],
) -> list[Tag]:
    """Replace the announcement's tag set with ``tag_ids``."""
    announcement = load_announcement(db, announcement_id)
    roles, membership = roles_in_group(db, actor, announcement.group_id)
    can_tag_announcement(roles, membership, announcement).require()

    wanted = set(tag_ids)
    attach_tags(db, announcement, sorted(wanted))
    stale_stmt = select(AnnouncementTag).where(AnnouncementTag.announcement_id == announcement.id)
    if wanted:
        stale_stmt = stale_stmt.where(AnnouncementTag.tag_id.not_in(wanted))
    stale = db.scalars(stale_stmt).all()
    for link in stale:
        db.delete(link)
    db.commit()
    logger.info("Tags of announcement %s set by %s", announcement.id, actor.id)
    return list_announcement_tags(db, actor, announcement.id)


def list_announcement_tags(db: Session, actor: Actor, announcement_id: str) -> list[Tag]:
    announcement = load_announcement(db, announcement_id)
    return list(
        db.scalars(
            select(Tag)
            .join(AnnouncementTag, AnnouncementTag.tag_id == Tag.id)
            .where(AnnouncementTag.announcement_id == announcement.id)
            .order_by(Tag.title)
        ).all()
    )
