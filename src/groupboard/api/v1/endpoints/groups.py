# src/groupboard/api/v1/endpoints/groups.py
"""Group, membership and group-scoped listing endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from groupboard.schemas import (
    AnnouncementCreate,
    AnnouncementPageResponse,
    AnnouncementResponse,
    GroupCreate,
    GroupJoin,
    GroupResponse,
    GroupUpdate,
    MemberAdd,
    MemberResponse,
    MemberRoleUpdate,
    MyGroupResponse,
    Result,
    TagCreate,
    TagResponse,
    TagUsageResponse,
    ok,
)
from groupboard.services import announcements, lifecycle, membership, tags
from groupboard.services.announcements import SortField, SortOrder

from ..dependencies import CurrentActorDep, SessionDep

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=Result[GroupResponse], status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    """Create a pending group with the caller as its admin."""
    group = lifecycle.create_group(db, actor, payload.name, payload.description)
    return ok(GroupResponse.model_validate(group))


@router.get("", response_model=Result[list[MyGroupResponse]])
async def list_my_groups(actor: CurrentActorDep, db: SessionDep) -> Result:
    """List the groups the caller belongs to."""
    views = lifecycle.list_my_groups(db, actor)
    return ok([MyGroupResponse.model_validate(view) for view in views])


@router.post("/join", response_model=Result[GroupResponse])
async def join_group(payload: GroupJoin, actor: CurrentActorDep, db: SessionDep) -> Result:
    """Join an approved group by its shareable code."""
    group = membership.join_group(db, actor, payload.code)
    return ok(GroupResponse.model_validate(group))


@router.get("/{group_id}", response_model=Result[MyGroupResponse])
async def get_group(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    view = lifecycle.get_group(db, actor, group_id)
    return ok(MyGroupResponse.model_validate(view))


@router.patch("/{group_id}", response_model=Result[GroupResponse])
async def update_group(
    group_id: str,
    payload: GroupUpdate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    group = lifecycle.update_group(
        db,
        actor,
        group_id,
        name=payload.name,
        description=payload.description,
    )
    return ok(GroupResponse.model_validate(group))


@router.delete("/{group_id}", response_model=Result[None])
async def delete_group(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    """Delete a group and everything in it. Group admins only."""
    lifecycle.delete_group(db, actor, group_id)
    return ok()


@router.delete("/{group_id}/leave", response_model=Result[None])
async def leave_group(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    membership.leave_group(db, actor, group_id)
    return ok()


# Members


@router.get("/{group_id}/members", response_model=Result[list[MemberResponse]])
async def list_members(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    members = membership.list_members(db, actor, group_id)
    return ok([MemberResponse.model_validate(member) for member in members])


@router.post(
    "/{group_id}/members",
    response_model=Result[MemberResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    group_id: str,
    payload: MemberAdd,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    member = membership.add_member(db, actor, group_id, payload.user_id, payload.role)
    return ok(MemberResponse.model_validate(member))


@router.patch("/{group_id}/members/{user_id}", response_model=Result[MemberResponse])
async def update_member_role(
    group_id: str,
    user_id: str,
    payload: MemberRoleUpdate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    """Change a member's role to contributor or member."""
    member = membership.update_member_role(db, actor, group_id, user_id, payload.role)
    return ok(MemberResponse.model_validate(member))


@router.delete("/{group_id}/members/{user_id}", response_model=Result[None])
async def remove_member(
    group_id: str,
    user_id: str,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    membership.remove_member(db, actor, group_id, user_id)
    return ok()


# Announcements


@router.get("/{group_id}/announcements", response_model=Result[AnnouncementPageResponse])
async def list_announcements(
    group_id: str,
    actor: CurrentActorDep,
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
    sort_by: SortField = SortField.CREATED_AT,
    order: SortOrder = SortOrder.DESC,
    tag_id: str | None = None,
    include_archived: bool = False,
) -> Result:
    """List a group's announcements, pinned first."""
    result = announcements.list_announcements(
        db,
        actor,
        group_id,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
        tag_id=tag_id,
        include_archived=include_archived,
    )
    return ok(AnnouncementPageResponse.model_validate(result))


@router.get(
    "/{group_id}/announcements/pinned",
    response_model=Result[list[AnnouncementResponse]],
)
async def list_pinned_announcements(
    group_id: str,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    views = announcements.list_pinned_announcements(db, actor, group_id)
    return ok([AnnouncementResponse.model_validate(view) for view in views])


@router.post(
    "/{group_id}/announcements",
    response_model=Result[AnnouncementResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_announcement(
    group_id: str,
    payload: AnnouncementCreate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    """Post an announcement. Requires the contributor or admin role."""
    view = announcements.create_announcement(
        db,
        actor,
        group_id,
        payload.title,
        payload.content,
        deadline=payload.deadline,
        tag_ids=payload.tag_ids,
    )
    return ok(AnnouncementResponse.model_validate(view))


# Tags


@router.get("/{group_id}/tags", response_model=Result[list[TagUsageResponse]])
async def list_group_tags(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    usages = tags.list_group_tags(db, actor, group_id)
    return ok([TagUsageResponse.model_validate(usage) for usage in usages])


@router.post(
    "/{group_id}/tags",
    response_model=Result[TagResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_tag(
    group_id: str,
    payload: TagCreate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    tag = tags.create_tag(db, actor, group_id, payload.title, payload.color)
    return ok(TagResponse.model_validate(tag))
