# src/groupboard/authz/policies.py
"""Row-filtering policies enforced by the storage layer.

Every secured table carries its own SELECT, INSERT, UPDATE and DELETE
predicates, written as SQL expressions over either the stored row
(:class:`ColumnRow`) or a proposed row (:class:`ValueRow`). They are kept
separate from :mod:`groupboard.authz.predicates` on purpose: a bug in the
application checks must still be caught here.

Helper subqueries always read through private aliases (``gm_chk``,
``pr_chk`` ...). An alias never correlates with the table being filtered,
so no policy evaluates itself recursively; reading your own platform role
stays possible without already being a platform admin.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import sqlalchemy as sa
from sqlalchemy import Table
from sqlalchemy.sql.elements import ColumnElement

from groupboard.models import (
    ASSIGNABLE_ROLES,
    AUTHOR_ROLES,
    VOTE_COUNT_COLUMNS,
    Actor,
    Announcement,
    AnnouncementTag,
    Group,
    GroupMembership,
    GroupRole,
    PlatformRole,
    Tag,
    Vote,
)

actors: Table = Actor.__table__  # type: ignore[assignment]
platform_roles: Table = PlatformRole.__table__  # type: ignore[assignment]
groups: Table = Group.__table__  # type: ignore[assignment]
memberships: Table = GroupMembership.__table__  # type: ignore[assignment]
announcements: Table = Announcement.__table__  # type: ignore[assignment]
votes: Table = Vote.__table__  # type: ignore[assignment]
tags: Table = Tag.__table__  # type: ignore[assignment]
announcement_tags: Table = AnnouncementTag.__table__  # type: ignore[assignment]

_pr = platform_roles.alias("pr_chk")
_gm = memberships.alias("gm_chk")
_gm_peer = memberships.alias("gm_peer")
_grp = groups.alias("grp_chk")
_ann = announcements.alias("ann_chk")
_tag = tags.alias("tag_chk")


class ColumnRow:
    """Row accessor returning the table's own columns."""

    def __init__(self, table: Table) -> None:
        self._table = table

    def __getattr__(self, name: str) -> ColumnElement[Any]:
        try:
            return self._table.c[name]
        except KeyError as err:
            raise AttributeError(name) from err


class ValueRow:
    """Row accessor returning proposed values as typed literals.

    Unset values fall back to the column's scalar default, which is what the
    INSERT will end up writing.
    """

    def __init__(self, table: Table, values: Mapping[str, Any]) -> None:
        self._table = table
        self._values = values

    def __getattr__(self, name: str) -> ColumnElement[Any]:
        try:
            column = self._table.c[name]
        except KeyError as err:
            raise AttributeError(name) from err
        value = self._values.get(name)
        if value is None and column.default is not None and column.default.is_scalar:
            value = column.default.arg
        return sa.literal(value, type_=column.type)


Predicate = Callable[[str, Any], ColumnElement[bool]]
TransitionGuard = Callable[[Mapping[str, Any], Mapping[str, Any]], str | None]


@dataclass(frozen=True)
class TablePolicy:
    """Predicates for one table. ``None`` means nobody but the system."""

    model: type
    table: Table
    select: Predicate
    insert: Predicate | None = None
    update: Predicate | None = None
    update_check: Predicate | None = None
    delete: Predicate | None = None
    # Column -> predicate over the new values required to change it.
    column_guards: Mapping[str, Predicate | None] = field(default_factory=dict)
    # Invariant on (stored row, new values); applies even to system operations.
    transition_guard: TransitionGuard | None = None

    @property
    def with_check(self) -> Predicate | None:
        return self.update_check or self.update


# Shared sub-predicates.


def is_platform_admin(actor_id: str) -> ColumnElement[bool]:
    return sa.exists().where(_pr.c.actor_id == actor_id)


def is_group_member(actor_id: str, group_id: Any) -> ColumnElement[bool]:
    return sa.exists().where(_gm.c.group_id == group_id, _gm.c.user_id == actor_id)


def has_group_role(actor_id: str, group_id: Any, *roles: GroupRole) -> ColumnElement[bool]:
    return sa.exists().where(
        _gm.c.group_id == group_id,
        _gm.c.user_id == actor_id,
        _gm.c.role.in_(roles),
    )


def group_is_approved(group_id: Any) -> ColumnElement[bool]:
    return sa.exists().where(_grp.c.id == group_id, _grp.c.approved.is_(sa.true()))


def shares_group(actor_id: str, other_id: Any) -> ColumnElement[bool]:
    return sa.exists().where(
        _gm.c.user_id == actor_id,
        _gm_peer.c.group_id == _gm.c.group_id,
        _gm_peer.c.user_id == other_id,
    )


def is_announcement_group_member(actor_id: str, announcement_id: Any) -> ColumnElement[bool]:
    return sa.exists().where(
        _ann.c.id == announcement_id,
        _gm.c.group_id == _ann.c.group_id,
        _gm.c.user_id == actor_id,
    )


def can_tag_announcement(actor_id: str, announcement_id: Any) -> ColumnElement[bool]:
    return sa.exists().where(
        _ann.c.id == announcement_id,
        _gm.c.group_id == _ann.c.group_id,
        _gm.c.user_id == actor_id,
        sa.or_(
            _gm.c.role == GroupRole.ADMIN,
            sa.and_(_gm.c.role == GroupRole.CONTRIBUTOR, _ann.c.author_id == actor_id),
        ),
    )


def tag_in_announcement_group(tag_id: Any, announcement_id: Any) -> ColumnElement[bool]:
    return sa.exists().where(
        _tag.c.id == tag_id,
        _ann.c.id == announcement_id,
        _tag.c.group_id == _ann.c.group_id,
    )


# actor


def _actor_select(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(
        row.id == actor_id,
        is_platform_admin(actor_id),
        shares_group(actor_id, row.id),
    )


# platform_role


def _platform_role_select(actor_id: str, row: Any) -> ColumnElement[bool]:
    # Union, not recursion: own row OR already a platform admin.
    return sa.or_(row.actor_id == actor_id, is_platform_admin(actor_id))


def _platform_role_insert(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(is_platform_admin(actor_id), row.granted_by == actor_id)


def _platform_role_delete(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(is_platform_admin(actor_id), row.actor_id != actor_id)


# groups


def _group_select(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(is_group_member(actor_id, row.id), is_platform_admin(actor_id))


def _group_insert(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(
        row.creator_id == actor_id,
        sa.not_(row.approved),
        row.approved_at.is_(None),
        row.approved_by.is_(None),
        row.rejected_at.is_(None),
        row.rejected_by.is_(None),
    )


def _group_manage(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(has_group_role(actor_id, row.id, GroupRole.ADMIN), is_platform_admin(actor_id))


def _platform_admin_only(actor_id: str, _row: Any) -> ColumnElement[bool]:
    return is_platform_admin(actor_id)


def group_lifecycle_guard(stored: Mapping[str, Any], new: Mapping[str, Any]) -> str | None:
    """Return why a lifecycle change is illegal, or ``None`` when it is fine."""
    was_approved = bool(stored["approved"])
    was_rejected = stored["rejected_at"] is not None
    if was_approved and not new["approved"]:
        return "An approved group cannot return to pending"
    if was_approved and new["rejected_at"] is not None:
        return "An approved group cannot be rejected"
    if was_rejected and new["approved"]:
        return "A rejected group cannot be approved"
    if was_rejected and new["rejected_at"] is None:
        return "A rejected group cannot be reopened"
    return None


# group_member


def _membership_select(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(
        row.user_id == actor_id,
        is_group_member(actor_id, row.group_id),
        is_platform_admin(actor_id),
    )


def _membership_insert(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(
        sa.and_(
            row.user_id == actor_id,
            row.role == GroupRole.MEMBER,
            group_is_approved(row.group_id),
        ),
        sa.and_(
            _membership_manage(actor_id, row),
            row.role.in_(ASSIGNABLE_ROLES),
            group_is_approved(row.group_id),
        ),
    )


def _membership_manage(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(
        has_group_role(actor_id, row.group_id, GroupRole.ADMIN),
        is_platform_admin(actor_id),
    )


def _membership_update_check(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(
        row.user_id != actor_id,
        row.role.in_(ASSIGNABLE_ROLES),
        has_group_role(actor_id, row.group_id, GroupRole.ADMIN),
    )


def _membership_delete(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(row.user_id == actor_id, _membership_manage(actor_id, row))


# announcement


def _announcement_select(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(
        is_platform_admin(actor_id),
        sa.and_(
            is_group_member(actor_id, row.group_id),
            sa.or_(
                sa.not_(row.is_archived),
                has_group_role(actor_id, row.group_id, GroupRole.ADMIN),
            ),
        ),
    )


def _announcement_insert(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(
        row.author_id == actor_id,
        has_group_role(actor_id, row.group_id, *AUTHOR_ROLES),
        group_is_approved(row.group_id),
        row.upvotes_count == 0,
        row.downvotes_count == 0,
        sa.or_(
            sa.and_(sa.not_(row.is_pinned), sa.not_(row.is_archived)),
            has_group_role(actor_id, row.group_id, GroupRole.ADMIN),
        ),
    )


def _announcement_modify(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(
        sa.and_(
            row.author_id == actor_id,
            has_group_role(actor_id, row.group_id, *AUTHOR_ROLES),
        ),
        has_group_role(actor_id, row.group_id, GroupRole.ADMIN),
    )


def _group_admin(actor_id: str, row: Any) -> ColumnElement[bool]:
    return has_group_role(actor_id, row.group_id, GroupRole.ADMIN)


# vote


def _announcement_child_select(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(
        is_platform_admin(actor_id),
        is_announcement_group_member(actor_id, row.announcement_id),
    )


def _vote_insert(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(row.user_id == actor_id, _announcement_child_select(actor_id, row))


def _own_vote(actor_id: str, row: Any) -> ColumnElement[bool]:
    return row.user_id == actor_id


# tag


def _tag_select(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.or_(is_group_member(actor_id, row.group_id), is_platform_admin(actor_id))


def _tag_insert(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(_group_admin(actor_id, row), row.created_by == actor_id)


# announcement_tag


def _announcement_tag_insert(actor_id: str, row: Any) -> ColumnElement[bool]:
    return sa.and_(
        can_tag_announcement(actor_id, row.announcement_id),
        tag_in_announcement_group(row.tag_id, row.announcement_id),
    )


def _announcement_tag_delete(actor_id: str, row: Any) -> ColumnElement[bool]:
    return can_tag_announcement(actor_id, row.announcement_id)


POLICIES: dict[type, TablePolicy] = {
    policy.model: policy
    for policy in (
        TablePolicy(
            model=Actor,
            table=actors,
            select=_actor_select,
        ),
        TablePolicy(
            model=PlatformRole,
            table=platform_roles,
            select=_platform_role_select,
            insert=_platform_role_insert,
            delete=_platform_role_delete,
        ),
        TablePolicy(
            model=Group,
            table=groups,
            select=_group_select,
            insert=_group_insert,
            update=_group_manage,
            delete=_group_manage,
            column_guards={
                "approved": _platform_admin_only,
                "approved_at": _platform_admin_only,
                "approved_by": _platform_admin_only,
                "rejected_at": _platform_admin_only,
                "rejected_by": _platform_admin_only,
                "code": None,
                "creator_id": None,
            },
            transition_guard=group_lifecycle_guard,
        ),
        TablePolicy(
            model=GroupMembership,
            table=memberships,
            select=_membership_select,
            insert=_membership_insert,
            update=_group_admin,
            update_check=_membership_update_check,
            delete=_membership_delete,
            column_guards={"group_id": None, "user_id": None},
        ),
        TablePolicy(
            model=Announcement,
            table=announcements,
            select=_announcement_select,
            insert=_announcement_insert,
            update=_announcement_modify,
            delete=_announcement_modify,
            column_guards={
                "is_pinned": _group_admin,
                "is_archived": _group_admin,
                "group_id": None,
                "author_id": None,
                **{column: None for column in VOTE_COUNT_COLUMNS},
            },
        ),
        TablePolicy(
            model=Vote,
            table=votes,
            select=_announcement_child_select,
            insert=_vote_insert,
            update=_own_vote,
            delete=_own_vote,
            column_guards={"announcement_id": None, "user_id": None},
        ),
        TablePolicy(
            model=Tag,
            table=tags,
            select=_tag_select,
            insert=_tag_insert,
            update=_group_admin,
            delete=_group_admin,
            column_guards={"group_id": None, "created_by": None},
        ),
        TablePolicy(
            model=AnnouncementTag,
            table=announcement_tags,
            select=_announcement_child_select,
            insert=_announcement_tag_insert,
            delete=_announcement_tag_delete,
        ),
    )
}

SECURED_TABLES = frozenset(policy.table.name for policy in POLICIES.values())


def policy_for(obj: object) -> TablePolicy | None:
    """Return the policy governing ``obj``'s table, if any."""
    return POLICIES.get(type(obj))
