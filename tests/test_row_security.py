# mypy: ignore-errors
# tests/test_row_security.py
"""Tests for the storage-level row filtering, bypassing the services.

Each test opens a session bound to an actor and reads or writes the ORM
directly, so a drift between the application predicates and the stored
policies shows up here even when the services would have refused first.
"""

import pytest
from sqlalchemy import select, update

from groupboard.core.errors import InvariantViolation, RowSecurityViolation
from groupboard.db.row_security import system_operation
from groupboard.db.time import utcnow
from groupboard.models import (
    Announcement,
    AnnouncementTag,
    Group,
    GroupMembership,
    GroupRole,
    PlatformRole,
    Vote,
    VoteType,
)


def test_outsider_cannot_read_group(bound_session, group, outsider) -> None:
    """Rows the actor may not read are absent rather than forbidden."""
    session = bound_session(outsider)
    assert session.get(Group, group.id) is None
    assert session.scalars(select(Group)).all() == []
    assert session.scalars(select(GroupMembership)).all() == []


def test_member_reads_group_and_peers(bound_session, group, member_user) -> None:
    """Members see their group and every membership in it."""
    session = bound_session(member_user)
    assert session.get(Group, group.id) is not None
    user_ids = {m.user_id for m in session.scalars(select(GroupMembership)).all()}
    assert user_ids == {"owner", "contributor", "member"}


def test_platform_admin_reads_everything(bound_session, make_group, outsider, platform_admin) -> None:
    """Platform admins see groups they are not a member of, including pending ones."""
    pending = make_group(outsider, approved=False)
    session = bound_session(platform_admin)
    assert session.get(Group, pending.id) is not None


def test_archived_hidden_from_members(
    bound_session, group, owner, member_user, make_announcement
) -> None:
    """Archived announcements are filtered out for non-admin members."""
    visible = make_announcement(group, owner, title="Visible")
    archived = make_announcement(group, owner, title="Archived", is_archived=True)

    member_ids = {a.id for a in bound_session(member_user).scalars(select(Announcement)).all()}
    assert member_ids == {visible.id}

    admin_ids = {a.id for a in bound_session(owner).scalars(select(Announcement)).all()}
    assert admin_ids == {visible.id, archived.id}


def test_member_cannot_insert_announcement(bound_session, group, member_user) -> None:
    """Plain members are refused at flush time even without the services."""
    session = bound_session(member_user)
    session.add(
        Announcement(group_id=group.id, author_id=member_user.id, title="Sneaky", content="x")
    )
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_contributor_inserts_announcement(bound_session, group, contributor_user) -> None:
    """Contributors may insert announcements authored by themselves."""
    session = bound_session(contributor_user)
    session.add(
        Announcement(group_id=group.id, author_id=contributor_user.id, title="Hello", content="x")
    )
    session.commit()


def test_contributor_cannot_post_as_someone_else(bound_session, group, owner, contributor_user) -> None:
    session = bound_session(contributor_user)
    session.add(Announcement(group_id=group.id, author_id=owner.id, title="Forged", content="x"))
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_contributor_cannot_insert_pinned(bound_session, group, contributor_user) -> None:
    """Only admins may create an announcement already pinned."""
    session = bound_session(contributor_user)
    session.add(
        Announcement(
            group_id=group.id,
            author_id=contributor_user.id,
            title="Pinned",
            content="x",
            is_pinned=True,
        )
    )
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_vote_counters_are_not_writable(bound_session, announcement, owner) -> None:
    """Not even a group admin may write the vote counters directly."""
    session = bound_session(owner)
    row = session.get(Announcement, announcement.id)
    row.upvotes_count = 42
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_statement_level_writes_refused(bound_session, announcement, owner) -> None:
    """Bulk UPDATE would skip the per-row checks, so it is refused outright."""
    session = bound_session(owner)
    with pytest.raises(RowSecurityViolation):
        session.execute(
            update(Announcement)
            .where(Announcement.id == announcement.id)
            .values(title="Bulk edit")
        )


def test_self_join_only_as_member_of_approved_group(
    bound_session, group, make_group, owner, outsider
) -> None:
    """An actor may add themselves as a member, never as admin or to a pending group."""
    session = bound_session(outsider)
    session.add(GroupMembership(group_id=group.id, user_id=outsider.id, role=GroupRole.ADMIN))
    with pytest.raises(RowSecurityViolation):
        session.flush()
    session.rollback()

    pending = make_group(owner, approved=False)
    session.add(GroupMembership(group_id=pending.id, user_id=outsider.id, role=GroupRole.MEMBER))
    with pytest.raises(RowSecurityViolation):
        session.flush()
    session.rollback()

    session.add(GroupMembership(group_id=group.id, user_id=outsider.id, role=GroupRole.MEMBER))
    session.commit()


def test_admin_cannot_promote_to_admin(bound_session, group, owner, member_user) -> None:
    """The admin role is never assignable through an update."""
    session = bound_session(owner)
    membership = session.get(GroupMembership, (group.id, member_user.id))
    membership.role = GroupRole.ADMIN
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_member_cannot_change_roles(bound_session, group, member_user, contributor_user) -> None:
    session = bound_session(member_user)
    membership = session.get(GroupMembership, (group.id, contributor_user.id))
    membership.role = GroupRole.MEMBER
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_platform_admin_adds_only_assignable_roles_to_approved_groups(
    bound_session, group, make_group, owner, outsider, platform_admin
) -> None:
    """Platform admins add members like a group admin would; admin is never grantable."""
    session = bound_session(platform_admin)
    session.add(GroupMembership(group_id=group.id, user_id=outsider.id, role=GroupRole.ADMIN))
    with pytest.raises(RowSecurityViolation):
        session.flush()
    session.rollback()

    pending = make_group(owner, approved=False)
    session.add(GroupMembership(group_id=pending.id, user_id=outsider.id, role=GroupRole.MEMBER))
    with pytest.raises(RowSecurityViolation):
        session.flush()
    session.rollback()

    session.add(GroupMembership(group_id=group.id, user_id=outsider.id, role=GroupRole.CONTRIBUTOR))
    session.commit()


def test_platform_admin_cannot_change_roles(bound_session, group, member_user, platform_admin) -> None:
    session = bound_session(platform_admin)
    membership = session.get(GroupMembership, (group.id, member_user.id))
    membership.role = GroupRole.CONTRIBUTOR
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_group_admin_cannot_approve(bound_session, make_group, owner) -> None:
    """Approval columns are reserved for platform admins."""
    pending = make_group(owner, approved=False)
    session = bound_session(owner)
    row = session.get(Group, pending.id)
    row.approved = True
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_insert_group_must_start_pending(bound_session, owner) -> None:
    """A group cannot be created already approved."""
    session = bound_session(owner)
    session.add(Group(name="Shortcut", code="SHORTCUT", creator_id=owner.id, approved=True))
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_approved_group_cannot_return_to_pending(db_session, group) -> None:
    """The lifecycle guard applies even to trusted sessions."""
    group.approved = False
    with pytest.raises(InvariantViolation) as excinfo:
        db_session.flush()
    assert excinfo.value.code == "lifecycle"
    db_session.rollback()


def test_rejected_group_cannot_be_approved(db_session, make_group, owner) -> None:
    rejected = make_group(owner, approved=False, rejected=True)
    rejected.rejected_at = None
    rejected.approved = True
    rejected.approved_at = utcnow()
    with pytest.raises(InvariantViolation):
        db_session.flush()
    db_session.rollback()


def test_platform_role_self_read(bound_session, owner, platform_admin) -> None:
    """Anyone may read their own platform role row; only admins read others."""
    plain = bound_session(owner)
    assert plain.get(PlatformRole, platform_admin.id) is None
    assert plain.get(PlatformRole, owner.id) is None

    admin = bound_session(platform_admin)
    assert admin.get(PlatformRole, platform_admin.id) is not None


def test_platform_admin_cannot_delete_own_role(bound_session, platform_admin) -> None:
    session = bound_session(platform_admin)
    session.delete(session.get(PlatformRole, platform_admin.id))
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_cannot_vote_for_someone_else(bound_session, announcement, member_user, owner) -> None:
    session = bound_session(member_user)
    session.add(Vote(announcement_id=announcement.id, user_id=owner.id, vote_type=VoteType.UPVOTE))
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_outsider_cannot_vote(bound_session, announcement, outsider) -> None:
    session = bound_session(outsider)
    session.add(
        Vote(announcement_id=announcement.id, user_id=outsider.id, vote_type=VoteType.UPVOTE)
    )
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_cross_group_tag_link_refused(
    bound_session, announcement, make_group, make_tag, owner
) -> None:
    """A tag from another group cannot be attached, even by an admin of both."""
    other_group = make_group(owner, name="Other Group")
    foreign_tag = make_tag(other_group, owner, title="foreign")

    session = bound_session(owner)
    session.add(AnnouncementTag(announcement_id=announcement.id, tag_id=foreign_tag.id))
    with pytest.raises(RowSecurityViolation):
        session.flush()


def test_system_operation_elevates_temporarily(bound_session, make_group, owner, outsider) -> None:
    """Elevated blocks bypass the filters and the context is restored afterwards."""
    pending = make_group(owner, approved=False)
    session = bound_session(outsider)
    with system_operation(session, "test lookup"):
        assert session.scalars(select(Group).where(Group.id == pending.id)).first() is not None
    session.expunge_all()
    assert session.get(Group, pending.id) is None


def test_commit_without_admin_is_refused(db_session, group, owner) -> None:
    """Deleting the last admin through a trusted session fails at commit."""
    db_session.delete(db_session.get(GroupMembership, (group.id, owner.id)))
    with pytest.raises(InvariantViolation) as excinfo:
        db_session.commit()
    assert excinfo.value.code == "sole_admin"
    db_session.rollback()


def test_sole_admin_cannot_leave_empty_group(bound_session, make_group, owner, db_session) -> None:
    """A group with no other members still cannot lose its only admin."""
    solo = make_group(owner, name="Solo")
    session = bound_session(owner)
    session.delete(session.get(GroupMembership, (solo.id, owner.id)))
    with pytest.raises(InvariantViolation) as excinfo:
        session.commit()
    assert excinfo.value.code == "sole_admin"
    session.rollback()

    db_session.expire_all()
    assert db_session.get(GroupMembership, (solo.id, owner.id)).role == GroupRole.ADMIN


def test_deleting_group_removes_last_admin(bound_session, make_group, owner, db_session) -> None:
    solo = make_group(owner, name="Solo")
    solo_id = solo.id
    session = bound_session(owner)
    session.delete(session.get(Group, solo_id))
    session.commit()

    db_session.expire_all()
    assert db_session.get(GroupMembership, (solo_id, owner.id)) is None


def test_new_group_needs_admin(db_session, owner) -> None:
    """A group committed without any admin membership is refused."""
    db_session.add(Group(name="Orphan", code="ORPHAN22", creator_id=owner.id))
    with pytest.raises(InvariantViolation):
        db_session.commit()
    db_session.rollback()


def test_counters_follow_vote_rows(db_session, announcement, owner, member_user, contributor_user) -> None:
    """Counters are recomputed from the vote table on every vote write."""
    db_session.add_all(
        [
            Vote(announcement_id=announcement.id, user_id=owner.id, vote_type=VoteType.UPVOTE),
            Vote(announcement_id=announcement.id, user_id=member_user.id, vote_type=VoteType.UPVOTE),
            Vote(
                announcement_id=announcement.id,
                user_id=contributor_user.id,
                vote_type=VoteType.DOWNVOTE,
            ),
        ]
    )
    db_session.commit()
    db_session.refresh(announcement)
    assert (announcement.upvotes_count, announcement.downvotes_count) == (2, 1)

    vote = db_session.scalars(select(Vote).where(Vote.user_id == member_user.id)).one()
    db_session.delete(vote)
    db_session.commit()
    db_session.refresh(announcement)
    assert (announcement.upvotes_count, announcement.downvotes_count) == (1, 1)
