# src/groupboard/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .admin import (
    GroupActivityResponse,
    PlatformAdminGrant,
    PlatformAdminResponse,
    PlatformStatusResponse,
    SystemStatisticsResponse,
)
from .announcement import (
    AnnouncementCreate,
    AnnouncementPageResponse,
    AnnouncementPermissionsResponse,
    AnnouncementResponse,
    AnnouncementUpdate,
    ArchiveRequest,
)
from .common import ErrorBody, Result, ok
from .group import (
    AdminGroupCreate,
    GroupCreate,
    GroupJoin,
    GroupResponse,
    GroupSummaryResponse,
    GroupUpdate,
    MyGroupResponse,
    PendingGroupResponse,
)
from .member import MemberAdd, MemberResponse, MemberRoleUpdate
from .tag import AnnouncementTagsUpdate, TagCreate, TagResponse, TagUpdate, TagUsageResponse
from .vote import VoteCreate, VoteStateResponse

__all__ = [
    "GroupActivityResponse", "PlatformAdminGrant", "PlatformAdminResponse",
    "PlatformStatusResponse", "SystemStatisticsResponse",
    "AnnouncementCreate", "AnnouncementPageResponse", "AnnouncementPermissionsResponse",
    "AnnouncementResponse", "AnnouncementUpdate", "ArchiveRequest",
    "ErrorBody", "Result", "ok",
    "AdminGroupCreate", "GroupCreate", "GroupJoin", "GroupResponse",
    "GroupSummaryResponse", "GroupUpdate", "MyGroupResponse", "PendingGroupResponse",
    "MemberAdd", "MemberResponse", "MemberRoleUpdate",
    "AnnouncementTagsUpdate", "TagCreate", "TagResponse", "TagUpdate", "TagUsageResponse",
    "VoteCreate", "VoteStateResponse",
]
