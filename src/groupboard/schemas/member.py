"""Membership-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from groupboard.models import GroupRole


class MemberAdd(BaseModel):
    """Schema for adding an existing user to a group."""

    user_id: str = Field(..., min_length=1, max_length=64)
    role: GroupRole = GroupRole.MEMBER


class MemberRoleUpdate(BaseModel):
    """Schema for changing a member's role."""

    role: GroupRole


class MemberResponse(BaseModel):
    """Schema for a group member returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: str | None = None
    role: GroupRole
    joined_at: datetime
