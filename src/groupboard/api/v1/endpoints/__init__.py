# src/groupboard/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .announcements import router as announcements_router
from .groups import router as groups_router
from .tags import router as tags_router
from .votes import router as votes_router

__all__ = [
    "admin_router",
    "announcements_router",
    "groups_router",
    "tags_router",
    "votes_router",
]
