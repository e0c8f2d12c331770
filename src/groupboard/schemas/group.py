# src/groupboard/schemas/group.py
"""Group-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from groupboard.models import GroupRole, GroupState


class GroupCreate(BaseModel):
    """Schema for creating a new group."""

    name: str = Field(..., min_length=3, max_length=100)
    description: str | None = Field(None, max_length=2000)


class GroupUpdate(BaseModel):
    """Partial update of a group's name or description."""

    name: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, max_length=2000)


class GroupJoin(BaseModel):
    """Schema for joining a group with its shareable code."""

    code: str = Field(..., min_length=1, max_length=32)


class AdminGroupCreate(GroupCreate):
    """Platform-admin group creation, optionally naming the group admin."""

    admin_actor_id: str | None = None


def _flatten_group_view(data: object, *extra: str) -> object:
    """Merge a service view (``.group`` plus extra fields) into one mapping."""
    group = getattr(data, "group", None)
    if group is None:
        return data
    flattened = {name: getattr(group, name, None) for name in GroupResponse.model_fields}
    flattened.update({name: getattr(data, name) for name in extra})
    return flattened


class GroupResponse(BaseModel):
    """Schema for group information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    creator_id: str
    name: str
    description: str | None
    code: str
    state: GroupState
    approved: bool
    approved_at: datetime | None
    approved_by: str | None
    rejected_at: datetime | None
    rejected_by: str | None
    created_at: datetime
    updated_at: datetime


class MyGroupResponse(GroupResponse):
    """A group plus the caller's role in it."""

    role: GroupRole | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_view(cls, data: object) -> object:
        return _flatten_group_view(data, "role")


class PendingGroupResponse(GroupResponse):
    """Entry in the platform admin review queue."""

    creator_email: str | None = None
    admin_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _flatten_view(cls, data: object) -> object:
        return _flatten_group_view(data, "creator_email", "admin_count")


class GroupSummaryResponse(GroupResponse):
    """Group with member and announcement counts, for the admin dashboard."""

    member_count: int = 0
    announcement_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _flatten_view(cls, data: object) -> object:
        return _flatten_group_view(data, "member_count", "announcement_count")
