# src/groupboard/api/v1/endpoints/admin.py
"""Platform administration endpoints.

Everything here except ``/admin/status`` requires the platform admin role;
the services enforce it.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from groupboard.models import GroupState
from groupboard.schemas import (
    AdminGroupCreate,
    GroupActivityResponse,
    GroupResponse,
    GroupSummaryResponse,
    PendingGroupResponse,
    PlatformAdminGrant,
    PlatformAdminResponse,
    PlatformStatusResponse,
    Result,
    SystemStatisticsResponse,
    ok,
)
from groupboard.services import lifecycle, platform_admin

from ..dependencies import CurrentActorDep, SessionDep

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/status", response_model=Result[PlatformStatusResponse])
async def get_status(actor: CurrentActorDep, db: SessionDep) -> Result:
    """Whether the caller is a platform admin."""
    return ok(PlatformStatusResponse(**platform_admin.platform_status(db, actor)))


@router.get("/groups/pending", response_model=Result[list[PendingGroupResponse]])
async def list_pending_groups(actor: CurrentActorDep, db: SessionDep) -> Result:
    pending = lifecycle.list_pending_groups(db, actor)
    return ok([PendingGroupResponse.model_validate(entry) for entry in pending])


@router.get("/groups", response_model=Result[list[GroupSummaryResponse]])
async def list_all_groups(
    actor: CurrentActorDep,
    db: SessionDep,
    state: GroupState | None = None,
) -> Result:
    summaries = lifecycle.list_all_groups(db, actor, state)
    return ok([GroupSummaryResponse.model_validate(summary) for summary in summaries])


@router.post("/groups", response_model=Result[GroupResponse], status_code=status.HTTP_201_CREATED)
async def create_group_as_admin(
    payload: AdminGroupCreate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    """Create a group, optionally making another user its admin."""
    group = lifecycle.create_group_as_admin(
        db,
        actor,
        payload.name,
        payload.description,
        admin_actor_id=payload.admin_actor_id,
    )
    return ok(GroupResponse.model_validate(group))


@router.post("/groups/{group_id}/approve", response_model=Result[GroupResponse])
async def approve_group(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    group = lifecycle.approve_group(db, actor, group_id)
    return ok(GroupResponse.model_validate(group))


@router.post("/groups/{group_id}/reject", response_model=Result[GroupResponse])
async def reject_group(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    group = lifecycle.reject_group(db, actor, group_id)
    return ok(GroupResponse.model_validate(group))


@router.delete("/groups/{group_id}", response_model=Result[None])
async def delete_group(group_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    lifecycle.delete_group(db, actor, group_id)
    return ok()


@router.get("/platform-admins", response_model=Result[list[PlatformAdminResponse]])
async def list_platform_admins(actor: CurrentActorDep, db: SessionDep) -> Result:
    admins = platform_admin.list_platform_admins(db, actor)
    return ok([PlatformAdminResponse.model_validate(admin) for admin in admins])


@router.post(
    "/platform-admins",
    response_model=Result[PlatformAdminResponse],
    status_code=status.HTTP_201_CREATED,
)
async def grant_platform_admin(
    payload: PlatformAdminGrant,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    role = platform_admin.grant_platform_admin(db, actor, payload.actor_id)
    return ok(PlatformAdminResponse.model_validate(role))


@router.delete("/platform-admins/{actor_id}", response_model=Result[None])
async def revoke_platform_admin(actor_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    platform_admin.revoke_platform_admin(db, actor, actor_id)
    return ok()


@router.get("/statistics", response_model=Result[SystemStatisticsResponse])
async def get_statistics(actor: CurrentActorDep, db: SessionDep) -> Result:
    stats = platform_admin.system_statistics(db, actor)
    return ok(SystemStatisticsResponse.model_validate(stats))


@router.get("/group-activity", response_model=Result[list[GroupActivityResponse]])
async def get_group_activity(
    actor: CurrentActorDep,
    db: SessionDep,
    limit: Annotated[int | None, Query(ge=1, le=1000)] = None,
) -> Result:
    activity = platform_admin.group_activity(db, actor, limit)
    return ok([GroupActivityResponse.model_validate(entry) for entry in activity])
