"""Tag-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from groupboard.models import DEFAULT_TAG_COLOR

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class TagCreate(BaseModel):
    """Schema for creating a group tag."""

    title: str = Field(..., min_length=1, max_length=50)
    color: str = Field(DEFAULT_TAG_COLOR, pattern=HEX_COLOR)


class TagUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=50)
    color: str | None = Field(None, pattern=HEX_COLOR)


class AnnouncementTagsUpdate(BaseModel):
    """Replacement tag set for an announcement."""

    tag_ids: list[str] = Field(default_factory=list)


class TagResponse(BaseModel):
    """Schema for tag information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    title: str
    color: str
    created_by: str | None
    created_at: datetime


class TagUsageResponse(TagResponse):
    """Tag with the number of announcements carrying it."""

    usage_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _flatten_usage(cls, data: object) -> object:
        tag = getattr(data, "tag", None)
        if tag is None:
            return data
        flattened = {name: getattr(tag, name) for name in TagResponse.model_fields}
        flattened["usage_count"] = getattr(data, "usage_count", 0)
        return flattened
