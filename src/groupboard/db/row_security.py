# src/groupboard/db/row_security.py
"""Session-level enforcement of the row-filtering policies.

A session becomes subject to row security once :func:`bind_actor` has been
called on it. From then on:

* every ORM SELECT is filtered with the table's SELECT policy, so rows the
  actor may not read are simply absent;
* every flush checks INSERT, UPDATE and DELETE against the stored row and the
  proposed values and raises :class:`RowSecurityViolation` on a mismatch;
* statement-level INSERT/UPDATE/DELETE against secured tables is refused,
  because it would skip the per-row checks.

Unbound sessions act as the trusted service role (migrations, maintenance
scripts, fixtures). :func:`system_operation` is the only way for a bound
session to run with elevated rights.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any

import sqlalchemy as sa
from sqlalchemy import event, inspect
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from groupboard.authz.policies import (
    POLICIES,
    SECURED_TABLES,
    ColumnRow,
    Predicate,
    TablePolicy,
    ValueRow,
    policy_for,
)
from groupboard.core.errors import InvariantViolation, RowSecurityViolation

logger = logging.getLogger(__name__)

ROW_SECURITY_KEY = "groupboard.row_security"


@dataclass(frozen=True)
class RowSecurityContext:
    """Identity a session is acting for."""

    actor_id: str | None
    elevated: bool = False
    reason: str | None = None


def bind_actor(session: Session, actor_id: str | None) -> None:
    """Enforce row security on ``session`` for ``actor_id``.

    ``None`` binds an anonymous caller, for whom every predicate is false.
    """
    session.info[ROW_SECURITY_KEY] = RowSecurityContext(actor_id=actor_id)


def current_context(session: Session) -> RowSecurityContext | None:
    return session.info.get(ROW_SECURITY_KEY)


@contextmanager
def system_operation(session: Session, reason: str) -> Iterator[Session]:
    """Run the enclosed block with the storage layer's elevated rights.

    Work already pending is flushed first under the normal checks, and the
    elevated work is flushed before the block exits, so elevation never
    leaks onto rows the block did not create.
    """
    context = current_context(session)
    if context is None or context.elevated:
        yield session
        return

    session.flush()
    logger.debug("System operation for actor %s: %s", context.actor_id, reason)
    session.info[ROW_SECURITY_KEY] = replace(context, elevated=True, reason=reason)
    try:
        yield session
        session.flush()
    finally:
        session.info[ROW_SECURITY_KEY] = context


def _enforced(session: Session) -> RowSecurityContext | None:
    context = current_context(session)
    if context is None or context.elevated:
        return None
    return context


def _predicate(predicate: Predicate | None, actor_id: str | None, row: Any) -> sa.ColumnElement[bool]:
    if predicate is None or actor_id is None:
        return sa.false()
    return predicate(actor_id, row)


def _loader_criteria(actor_id: str | None) -> list[Any]:
    return [
        with_loader_criteria(
            policy.model,
            _predicate(policy.select, actor_id, ColumnRow(policy.table)),
        )
        for policy in POLICIES.values()
    ]


@event.listens_for(Session, "do_orm_execute")
def _filter_statement(orm_execute_state: ORMExecuteState) -> None:
    context = _enforced(orm_execute_state.session)
    if context is None:
        return

    if orm_execute_state.is_select:
        # Refreshing attributes of an object already loaded is not a new read.
        if orm_execute_state.is_column_load:
            return
        orm_execute_state.statement = orm_execute_state.statement.options(
            *_loader_criteria(context.actor_id)
        )
        return

    if orm_execute_state.is_insert or orm_execute_state.is_update or orm_execute_state.is_delete:
        table = getattr(orm_execute_state.statement, "table", None)
        if table is not None and table.name in SECURED_TABLES:
            logger.warning(
                "Refused statement-level write on %s for actor %s",
                table.name,
                context.actor_id,
            )
            raise RowSecurityViolation(
                f"Statement-level writes to {table.name} are not permitted for this session"
            )


def _values(obj: object) -> dict[str, Any]:
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


def _changed_columns(obj: object) -> set[str]:
    state = inspect(obj)
    return {
        attr.key
        for attr in state.mapper.column_attrs
        if state.attrs[attr.key].history.has_changes()
    }


def _primary_key_clause(policy: TablePolicy, obj: object) -> sa.ColumnElement[bool]:
    state = inspect(obj)
    identity = state.identity
    if identity is None:
        identity = state.mapper.primary_key_from_instance(obj)
    return sa.and_(
        *(column == value for column, value in zip(state.mapper.primary_key, identity, strict=True))
    )


def _deny(policy: TablePolicy, action: str, context: RowSecurityContext) -> None:
    logger.warning(
        "Row security denied %s on %s for actor %s",
        action,
        policy.table.name,
        context.actor_id,
    )
    raise RowSecurityViolation(f"Row-level policy denied {action} on {policy.table.name}")


def _check_values(
    session: Session,
    policy: TablePolicy,
    predicate: Predicate | None,
    values: Mapping[str, Any],
    action: str,
    context: RowSecurityContext,
) -> None:
    expression = _predicate(predicate, context.actor_id, ValueRow(policy.table, values))
    allowed = session.connection().execute(sa.select(expression)).scalar()
    if not allowed:
        _deny(policy, action, context)


def _check_stored_row(
    session: Session,
    policy: TablePolicy,
    predicate: Predicate | None,
    obj: object,
    action: str,
    context: RowSecurityContext,
) -> None:
    using = _predicate(predicate, context.actor_id, ColumnRow(policy.table))
    probe = (
        sa.select(sa.literal(1))
        .select_from(policy.table)
        .where(_primary_key_clause(policy, obj), using)
    )
    allowed = session.connection().execute(sa.select(sa.exists(probe))).scalar()
    if not allowed:
        _deny(policy, action, context)


def _check_insert(session: Session, obj: object, context: RowSecurityContext) -> None:
    policy = policy_for(obj)
    if policy is None:
        return
    _check_values(session, policy, policy.insert, _values(obj), "insert", context)


def _check_update(session: Session, obj: object, context: RowSecurityContext) -> None:
    policy = policy_for(obj)
    if policy is None:
        return
    changed = _changed_columns(obj)
    if not changed:
        return

    values = _values(obj)
    _check_stored_row(session, policy, policy.update, obj, "update", context)
    _check_values(session, policy, policy.with_check, values, "update", context)
    for column in sorted(changed & policy.column_guards.keys()):
        _check_values(
            session,
            policy,
            policy.column_guards[column],
            values,
            f"update of {column}",
            context,
        )


def _check_delete(session: Session, obj: object, context: RowSecurityContext) -> None:
    policy = policy_for(obj)
    if policy is None:
        return
    _check_stored_row(session, policy, policy.delete, obj, "delete", context)


def _check_transition(session: Session, obj: object) -> None:
    policy = policy_for(obj)
    if policy is None or policy.transition_guard is None:
        return
    if not _changed_columns(obj):
        return
    stored = (
        session.connection()
        .execute(sa.select(policy.table).where(_primary_key_clause(policy, obj)))
        .mappings()
        .first()
    )
    if stored is None:
        return
    problem = policy.transition_guard(stored, _values(obj))
    if problem is not None:
        logger.warning("Rejected %s transition: %s", policy.table.name, problem)
        raise InvariantViolation(problem, code="lifecycle")


@event.listens_for(Session, "before_flush")
def _check_flush(session: Session, _flush_context: Any, _instances: Any) -> None:
    dirty = [obj for obj in session.dirty if session.is_modified(obj, include_collections=False)]
    for obj in dirty:
        _check_transition(session, obj)

    context = _enforced(session)
    if context is None:
        return

    for obj in list(session.new):
        _check_insert(session, obj, context)
    for obj in dirty:
        _check_update(session, obj, context)
    for obj in list(session.deleted):
        _check_delete(session, obj, context)
