# src/groupboard/models/__init__.py
"""SQLAlchemy models for the Group Board application."""

from .actor import Actor
from .announcement import VOTE_COUNT_COLUMNS, Announcement
from .group import (
    ASSIGNABLE_ROLES,
    AUTHOR_ROLES,
    Group,
    GroupMembership,
    GroupRole,
    GroupState,
)
from .platform_role import PLATFORM_ADMIN, PlatformRole
from .tag import DEFAULT_TAG_COLOR, AnnouncementTag, Tag
from .vote import Vote, VoteType

__all__ = [
    "Actor",
    "Announcement", "VOTE_COUNT_COLUMNS",
    "ASSIGNABLE_ROLES", "AUTHOR_ROLES",
    "Group", "GroupMembership", "GroupRole", "GroupState",
    "PLATFORM_ADMIN", "PlatformRole",
    "AnnouncementTag", "DEFAULT_TAG_COLOR", "Tag",
    "Vote", "VoteType",
]

# Register session listeners once every mapper exists.
from groupboard.db import row_security, triggers  # noqa: E402,F401
