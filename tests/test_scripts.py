# mypy: ignore-errors
# tests/test_scripts.py
"""Tests for the command line maintenance helpers."""

from groupboard.core.security import decode_access_token
from groupboard.models import Actor, PlatformRole
from groupboard.scripts import grant_admin, tokens


def test_grant_creates_actor_and_role(db_session) -> None:
    """The bootstrap grant works before the actor has ever signed in."""
    assert grant_admin.grant(db_session, "first-admin", email="first@example.com") is True

    actor = db_session.get(Actor, "first-admin")
    assert actor.email == "first@example.com"
    role = db_session.get(PlatformRole, "first-admin")
    assert role is not None
    assert role.granted_by is None


def test_grant_is_idempotent(db_session, platform_admin) -> None:
    assert grant_admin.grant(db_session, platform_admin.id) is False


def test_revoke(db_session, platform_admin) -> None:
    assert grant_admin.revoke(db_session, platform_admin.id) is True
    assert db_session.get(PlatformRole, platform_admin.id) is None
    assert grant_admin.revoke(db_session, platform_admin.id) is False


def test_token_script_prints_valid_token(capsys) -> None:
    tokens.main(["dev-actor", "--email", "dev@example.com"])
    token = capsys.readouterr().out.strip()
    claims = decode_access_token(token)
    assert claims.actor_id == "dev-actor"
    assert claims.email == "dev@example.com"
