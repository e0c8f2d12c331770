# mypy: ignore-errors
# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-groupboard")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from groupboard.core.security import create_access_token  # noqa: E402
from groupboard.db.row_security import bind_actor  # noqa: E402
from groupboard.db.session import Base, enable_sqlite_foreign_keys  # noqa: E402
from groupboard.db.session import get_db as app_get_session  # noqa: E402
from groupboard.db.time import utcnow  # noqa: E402
from groupboard.main import app as fastapi_app  # noqa: E402
from groupboard.models import (  # noqa: E402
    Actor,
    Announcement,
    Group,
    GroupMembership,
    GroupRole,
    PlatformRole,
    Tag,
)

TEST_DB_URL = "sqlite://"

_CODE_COUNTER = count(1)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Unbound session acting as the trusted service role for arranging data."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def bound_session(session_factory: sessionmaker[Session]) -> Iterator[Callable[[Actor], Session]]:
    """Return a factory of sessions bound to an actor, bypassing the services."""
    sessions: list[Session] = []

    def _make(actor: Actor) -> Session:
        session = session_factory()
        bind_actor(session, actor.id)
        sessions.append(session)
        return session

    try:
        yield _make
    finally:
        for session in sessions:
            session.rollback()
            session.close()


@pytest.fixture()
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, engine: Engine) -> Iterator[None]:
    request_sessions = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def _get_session_override() -> Generator[Session, None, None]:
        session = request_sessions()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _auth_headers(actor: Actor) -> dict[str, str]:
    token = create_access_token(actor.id, email=actor.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers() -> Callable[[Actor], dict[str, str]]:
    """Return a helper building bearer headers that carry an actor's identity."""
    return _auth_headers


@pytest.fixture()
def make_actor(db_session: Session) -> Callable[..., Actor]:
    def _make(actor_id: str, *, platform_admin: bool = False) -> Actor:
        actor = Actor(id=actor_id, email=f"{actor_id}@example.com")
        db_session.add(actor)
        if platform_admin:
            db_session.add(PlatformRole(actor_id=actor_id))
        db_session.commit()
        return actor

    return _make


@pytest.fixture()
def owner(make_actor) -> Actor:
    return make_actor("owner")


@pytest.fixture()
def contributor_user(make_actor) -> Actor:
    return make_actor("contributor")


@pytest.fixture()
def member_user(make_actor) -> Actor:
    return make_actor("member")


@pytest.fixture()
def outsider(make_actor) -> Actor:
    return make_actor("outsider")


@pytest.fixture()
def platform_admin(make_actor) -> Actor:
    return make_actor("platform-admin", platform_admin=True)


@pytest.fixture()
def make_group(db_session: Session) -> Callable[..., Group]:
    """Create a group with its creator as admin in a single commit."""

    def _make(
        creator: Actor,
        *,
        name: str = "Test Group",
        approved: bool = True,
        rejected: bool = False,
        code: str | None = None,
    ) -> Group:
        group = Group(
            creator_id=creator.id,
            name=name,
            code=code or f"TST{next(_CODE_COUNTER):05d}",
            approved=approved,
            approved_at=utcnow() if approved else None,
            rejected_at=utcnow() if rejected else None,
        )
        db_session.add(group)
        db_session.flush()
        db_session.add(GroupMembership(group_id=group.id, user_id=creator.id, role=GroupRole.ADMIN))
        db_session.commit()
        return group

    return _make


@pytest.fixture()
def add_member(db_session: Session) -> Callable[..., GroupMembership]:
    def _add(group: Group, actor: Actor, role: GroupRole = GroupRole.MEMBER) -> GroupMembership:
        membership = GroupMembership(group_id=group.id, user_id=actor.id, role=role)
        db_session.add(membership)
        db_session.commit()
        return membership

    return _add


@pytest.fixture()
def group(make_group, add_member, owner, contributor_user, member_user) -> Group:
    """Approved group: owner is admin, plus one contributor and one member."""
    group = make_group(owner)
    add_member(group, contributor_user, GroupRole.CONTRIBUTOR)
    add_member(group, member_user, GroupRole.MEMBER)
    return group


@pytest.fixture()
def make_announcement(db_session: Session) -> Callable[..., Announcement]:
    def _make(
        group: Group,
        author: Actor,
        *,
        title: str = "Weekly update",
        content: str = "Some **markdown** content",
        is_pinned: bool = False,
        is_archived: bool = False,
    ) -> Announcement:
        announcement = Announcement(
            group_id=group.id,
            author_id=author.id,
            title=title,
            content=content,
            is_pinned=is_pinned,
            is_archived=is_archived,
        )
        db_session.add(announcement)
        db_session.commit()
        return announcement

    return _make


@pytest.fixture()
def announcement(group, owner, make_announcement) -> Announcement:
    return make_announcement(group, owner)


@pytest.fixture()
def make_tag(db_session: Session) -> Callable[..., Tag]:
    def _make(group: Group, creator: Actor, title: str = "urgent", color: str = "#ff0000") -> Tag:
        tag = Tag(group_id=group.id, title=title, color=color, created_by=creator.id)
        db_session.add(tag)
        db_session.commit()
        return tag

    return _make
