# src/groupboard/authz/__init__.py
"""Authorization: role resolution, permission predicates and row policies."""

from .predicates import Decision
from .roles import GroupRoleResolution, ResolvedRoles, resolve_group_role, resolve_roles

__all__ = [
    "Decision",
    "GroupRoleResolution",
    "ResolvedRoles",
    "resolve_group_role",
    "resolve_roles",
]
