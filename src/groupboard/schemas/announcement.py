# src/groupboard/schemas/announcement.py
"""Announcement-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from groupboard.models import VoteType

from .tag import TagResponse


class AnnouncementCreate(BaseModel):
    """Schema for creating a new announcement."""

    title: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=1, max_length=50000, description="Markdown content")
    deadline: datetime | None = None
    tag_ids: list[str] = Field(default_factory=list)


class AnnouncementUpdate(BaseModel):
    """Partial update; only the fields sent are applied.

    ``is_pinned`` and ``is_archived`` require the group admin role.
    """

    title: str | None = Field(None, min_length=3, max_length=200)
    content: str | None = Field(None, min_length=1, max_length=50000)
    deadline: datetime | None = None
    is_pinned: bool | None = None
    is_archived: bool | None = None


class ArchiveRequest(BaseModel):
    archived: bool = True


class AnnouncementResponse(BaseModel):
    """Schema for announcement information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    author_id: str
    title: str
    content: str
    deadline: datetime | None
    is_pinned: bool
    is_archived: bool
    upvotes_count: int
    downvotes_count: int
    created_at: datetime
    updated_at: datetime
    user_vote: VoteType | None = None
    tags: list[TagResponse] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_view(cls, data: object) -> object:
        announcement = getattr(data, "announcement", None)
        if announcement is None:
            return data
        flattened = {
            name: getattr(announcement, name)
            for name in cls.model_fields
            if name not in ("user_vote", "tags")
        }
        flattened["user_vote"] = getattr(data, "user_vote", None)
        flattened["tags"] = list(getattr(data, "tags", ()))
        return flattened


class AnnouncementPageResponse(BaseModel):
    """One page of announcements with pagination metadata."""

    model_config = ConfigDict(from_attributes=True)

    items: list[AnnouncementResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class AnnouncementPermissionsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    can_edit: bool
    can_delete: bool
    can_pin: bool
    can_archive: bool
    is_author: bool
    is_admin: bool
