"""Platform administration schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PlatformAdminGrant(BaseModel):
    """Schema for granting the platform admin role."""

    actor_id: str = Field(..., min_length=1, max_length=64)


class PlatformAdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    actor_id: str
    email: str | None = None
    granted_by: str | None = None
    granted_at: datetime


class PlatformStatusResponse(BaseModel):
    is_platform_admin: bool


class SystemStatisticsResponse(BaseModel):
    """Platform-wide counters for the admin dashboard."""

    model_config = ConfigDict(from_attributes=True)

    total_groups: int
    pending_groups: int
    approved_groups: int
    rejected_groups: int
    total_announcements: int
    total_memberships: int
    active_users: int
    total_votes: int


class GroupActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    group_id: str
    name: str
    member_count: int
    announcement_count: int
    total_votes: int
    last_announcement_at: datetime | None
