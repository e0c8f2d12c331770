# mypy: ignore-errors
# tests/test_platform_admin.py
"""Tests for platform admin management and platform statistics."""

from fastapi import status

from groupboard.models import PlatformRole, Vote, VoteType


def test_status_reports_role(client, owner, platform_admin, auth_headers) -> None:
    plain = client.get("/api/v1/admin/status", headers=auth_headers(owner))
    assert plain.json()["value"] == {"is_platform_admin": False}

    admin = client.get("/api/v1/admin/status", headers=auth_headers(platform_admin))
    assert admin.json()["value"] == {"is_platform_admin": True}


def test_grant_platform_admin(client, owner, platform_admin, auth_headers, db_session) -> None:
    response = client.post(
        "/api/v1/admin/platform-admins",
        json={"actor_id": owner.id},
        headers=auth_headers(platform_admin),
    )
    assert response.status_code == status.HTTP_201_CREATED
    value = response.json()["value"]
    assert value["actor_id"] == owner.id
    assert value["granted_by"] == platform_admin.id

    role = db_session.get(PlatformRole, owner.id)
    assert role is not None


def test_grant_twice_conflicts(client, make_actor, platform_admin, auth_headers) -> None:
    """At most one platform role exists per actor."""
    make_actor("second-admin", platform_admin=True)
    response = client.post(
        "/api/v1/admin/platform-admins",
        json={"actor_id": "second-admin"},
        headers=auth_headers(platform_admin),
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_grant_unknown_actor(client, platform_admin, auth_headers) -> None:
    response = client.post(
        "/api/v1/admin/platform-admins",
        json={"actor_id": "ghost"},
        headers=auth_headers(platform_admin),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_grant_requires_platform_admin(client, owner, outsider, auth_headers) -> None:
    response = client.post(
        "/api/v1/admin/platform-admins",
        json={"actor_id": outsider.id},
        headers=auth_headers(owner),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_revoke_platform_admin(client, make_actor, platform_admin, auth_headers, db_session) -> None:
    make_actor("second-admin", platform_admin=True)
    response = client.delete(
        "/api/v1/admin/platform-admins/second-admin", headers=auth_headers(platform_admin)
    )
    assert response.status_code == status.HTTP_200_OK

    db_session.expire_all()
    assert db_session.get(PlatformRole, "second-admin") is None


def test_cannot_revoke_self(client, platform_admin, auth_headers) -> None:
    response = client.delete(
        f"/api/v1/admin/platform-admins/{platform_admin.id}", headers=auth_headers(platform_admin)
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "self_revoke"


def test_revoke_non_admin(client, owner, platform_admin, auth_headers) -> None:
    response = client.delete(
        f"/api/v1/admin/platform-admins/{owner.id}", headers=auth_headers(platform_admin)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_list_platform_admins(client, make_actor, platform_admin, auth_headers) -> None:
    make_actor("second-admin", platform_admin=True)
    response = client.get("/api/v1/admin/platform-admins", headers=auth_headers(platform_admin))
    assert response.status_code == status.HTTP_200_OK
    entries = {entry["actor_id"]: entry for entry in response.json()["value"]}
    assert set(entries) == {platform_admin.id, "second-admin"}
    assert entries["second-admin"]["email"] == "second-admin@example.com"


def test_statistics(
    client, group, make_group, owner, announcement, member_user, platform_admin, auth_headers, db_session
) -> None:
    make_group(owner, name="Pending Group", approved=False)
    make_group(owner, name="Rejected Group", approved=False, rejected=True)
    db_session.add(
        Vote(announcement_id=announcement.id, user_id=member_user.id, vote_type=VoteType.UPVOTE)
    )
    db_session.commit()

    response = client.get("/api/v1/admin/statistics", headers=auth_headers(platform_admin))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["value"] == {
        "total_groups": 3,
        "pending_groups": 1,
        "approved_groups": 1,
        "rejected_groups": 1,
        "total_announcements": 1,
        "total_memberships": 5,
        "active_users": 3,
        "total_votes": 1,
    }


def test_statistics_requires_platform_admin(client, owner, auth_headers) -> None:
    response = client.get("/api/v1/admin/statistics", headers=auth_headers(owner))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_group_activity(
    client, group, make_group, owner, announcement, member_user, platform_admin, auth_headers, db_session
) -> None:
    """Groups with recent announcements come first, with their vote totals."""
    quiet = make_group(owner, name="Quiet Group")
    db_session.add(
        Vote(announcement_id=announcement.id, user_id=member_user.id, vote_type=VoteType.DOWNVOTE)
    )
    db_session.commit()

    response = client.get("/api/v1/admin/group-activity", headers=auth_headers(platform_admin))
    assert response.status_code == status.HTTP_200_OK
    entries = response.json()["value"]
    assert [entry["group_id"] for entry in entries] == [group.id, quiet.id]
    assert entries[0]["member_count"] == 3
    assert entries[0]["announcement_count"] == 1
    assert entries[0]["total_votes"] == 1
    assert entries[1]["last_announcement_at"] is None

    limited = client.get(
        "/api/v1/admin/group-activity", params={"limit": 1}, headers=auth_headers(platform_admin)
    )
    assert len(limited.json()["value"]) == 1
