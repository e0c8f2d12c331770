"""Tag management endpoints for the Group Board API."""

from fastapi import APIRouter

from groupboard.schemas import Result, TagResponse, TagUpdate, ok
from groupboard.services import tags

from ..dependencies import CurrentActorDep, SessionDep

router = APIRouter(prefix="/tags", tags=["tags"])


@router.patch("/{tag_id}", response_model=Result[TagResponse])
async def update_tag(
    tag_id: str,
    payload: TagUpdate,
    actor: CurrentActorDep,
    db: SessionDep,
) -> Result:
    tag = tags.update_tag(db, actor, tag_id, title=payload.title, color=payload.color)
    return ok(TagResponse.model_validate(tag))


@router.delete("/{tag_id}", response_model=Result[None])
async def delete_tag(tag_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    tags.delete_tag(db, actor, tag_id)
    return ok()
