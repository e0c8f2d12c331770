"""Vote-related endpoints for the Group Board API."""

from fastapi import APIRouter

from groupboard.schemas import Result, VoteCreate, VoteStateResponse, ok
from groupboard.services import voting

from ..dependencies import CurrentActorDep, SessionDep

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("", response_model=Result[VoteStateResponse])
async def cast_vote(payload: VoteCreate, actor: CurrentActorDep, db: SessionDep) -> Result:
    """Cast, switch or withdraw a vote.

    Repeating the current vote removes it; casting the opposite vote switches.
    """
    state = voting.cast_vote(db, actor, payload.announcement_id, payload.vote_type)
    return ok(VoteStateResponse.model_validate(state))


@router.get("/{announcement_id}/my-vote", response_model=Result[VoteStateResponse])
async def get_my_vote(announcement_id: str, actor: CurrentActorDep, db: SessionDep) -> Result:
    state = voting.get_my_vote(db, actor, announcement_id)
    return ok(VoteStateResponse.model_validate(state))
