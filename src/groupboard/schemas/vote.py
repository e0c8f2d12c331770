"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

from groupboard.models import VoteType


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    announcement_id: str
    vote_type: VoteType = Field(..., description="upvote or downvote; repeating a vote removes it")


class VoteStateResponse(BaseModel):
    """The caller's vote and the announcement counters after a vote."""

    model_config = ConfigDict(from_attributes=True)

    announcement_id: str
    user_vote: VoteType | None
    upvotes_count: int
    downvotes_count: int
