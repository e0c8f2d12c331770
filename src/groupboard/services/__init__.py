"""Business logic services for the Group Board application.

Every service takes an actor-bound session and the acting :class:`Actor`,
raises :mod:`groupboard.core.errors` exceptions, and commits its own work.
"""

from . import announcements, lifecycle, membership, platform_admin, tags, voting

__all__ = [
    "announcements",
    "lifecycle",
    "membership",
    "platform_admin",
    "tags",
    "voting",
]
