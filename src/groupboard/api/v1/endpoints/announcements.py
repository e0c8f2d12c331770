# src/groupboard/api/v1/endpoints/announcements.py
"""Announcement endpoints for the Group Board API."""

from __future__ import annotations

from fastapi import APIRouter

from groupboard.schemas import (
    AnnouncementPermissionsResponse,
    AnnouncementResponse,
    AnnouncementTagsUpdate,
    AnnouncementUpdate,
    ArchiveRequest,
    Result,
    TagResponse,
    ok,
)
from groupboard.services import announcements, tags

from ..dependencies import CurrentActorDep, SessionDep

router = APIRouter(prefix="/announcements", tags=["announcements"])


@router.get("/{announcement_id}", response_model=Result[AnnouncementResponse])
async def get_announcement(announcement_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    """Get one announcement with the caller's vote and its tags."""
    view = announcements.get_announcement(db, actor, announcement_id)
    return ok(AnnouncementResponse.model_validate(view))


@router.patch("/{announcement_id}", response_model=Result[AnnouncementResponse])
async def update_announcement(
    announcement_id: str,
    payload: AnnouncementUpdate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    """Apply the fields present in the body."""
    changes = payload.model_dump(exclude_unset=True)
    view = announcements.update_announcement(db, actor, announcement_id, **changes)
    return ok(AnnouncementResponse.model_validate(view))


@router.delete("/{announcement_id}", response_model=Result[None])
async def delete_announcement(
    announcement_id: str,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    announcements.delete_announcement(db, actor, announcement_id)
    return ok()


@router.post("/{announcement_id}/pin", response_model=Result[AnnouncementResponse])
async def toggle_pin(announcement_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    view = announcements.toggle_pin(db, actor, announcement_id)
    return ok(AnnouncementResponse.model_validate(view))


@router.post("/{announcement_id}/archive", response_model=Result[AnnouncementResponse])
async def set_archived(
    announcement_id: str,
    actor: CurrentActorDep,
    db: SessionDep,
    payload: ArchiveRequest | None = None,
) -> Result:
    """Archive (or with ``{"archived": false}`` restore) an announcement."""
    archived = payload.archived if payload is not None else True
    view = announcements.set_archived(db, actor, announcement_id, archived)
    return ok(AnnouncementResponse.model_validate(view))


@router.get(
    "/{announcement_id}/permissions",
    response_model=Result[AnnouncementPermissionsResponse],
)
async def get_permissions(announcement_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    """What the caller may do with this announcement."""
    summary = announcements.announcement_permissions(db, actor, announcement_id)
    return ok(AnnouncementPermissionsResponse.model_validate(summary))


@router.get("/{announcement_id}/tags", response_model=Result[list[TagResponse]])
async def list_tags(announcement_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    attached = tags.list_announcement_tags(db, actor, announcement_id)
    return ok([TagResponse.model_validate(tag) for tag in attached])


@router.put("/{announcement_id}/tags", response_model=Result[list[TagResponse]])
async def replace_tags(
    announcement_id: str,
    payload: AnnouncementTagsUpdate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    attached = tags.set_announcement_tags(db, actor, announcement_id, payload.tag_ids)
    return ok([TagResponse.model_validate(tag) for tag in attached])
