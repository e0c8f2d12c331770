# src/groupboard/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    announcements_router,
    groups_router,
    tags_router,
    votes_router,
)

__all__ = [
    "admin_router",
    "announcements_router",
    "groups_router",
    "tags_router",
    "votes_router",
]
