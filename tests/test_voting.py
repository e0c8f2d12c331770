# mypy: ignore-errors
# tests/test_voting.py
"""Tests for the vote state machine and the recomputed counters."""

import pytest
from fastapi import status
from sqlalchemy import func, select

from groupboard.models import Announcement, Vote, VoteType
from groupboard.services import voting
from groupboard.services.voting import next_vote


@pytest.mark.parametrize(
    ("current", "cast", "expected"),
    [
        (None, VoteType.UPVOTE, VoteType.UPVOTE),
        (VoteType.UPVOTE, VoteType.UPVOTE, None),
        (VoteType.UPVOTE, VoteType.DOWNVOTE, VoteType.DOWNVOTE),
        (VoteType.DOWNVOTE, VoteType.UPVOTE, VoteType.UPVOTE),
        (VoteType.DOWNVOTE, VoteType.DOWNVOTE, None),
    ],
)
def test_next_vote_transitions(current, cast, expected) -> None:
    """Same vote clears, opposite vote switches, no vote sets."""
    assert next_vote(current, cast) is expected


def _vote(client, headers, announcement_id, vote_type):
    response = client.post(
        "/api/v1/votes",
        json={"announcement_id": announcement_id, "vote_type": vote_type},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    return response.json()["value"]


def _recount(db_session, announcement_id):
    rows = db_session.execute(
        select(Vote.vote_type, func.count())
        .where(Vote.announcement_id == announcement_id)
        .group_by(Vote.vote_type)
    ).all()
    counts = {VoteType(vote_type): total for vote_type, total in rows}
    return counts.get(VoteType.UPVOTE, 0), counts.get(VoteType.DOWNVOTE, 0)


def test_scenario_vote_toggle(
    client, group, contributor_user, member_user, make_announcement, auth_headers
) -> None:
    """Upvote, upvote again to clear, then downvote."""
    announcement = make_announcement(group, contributor_user, title="Meeting moved.")
    headers = auth_headers(member_user)

    first = _vote(client, headers, announcement.id, "upvote")
    assert (first["upvotes_count"], first["downvotes_count"]) == (1, 0)
    assert first["user_vote"] == "upvote"

    cleared = _vote(client, headers, announcement.id, "upvote")
    assert (cleared["upvotes_count"], cleared["downvotes_count"]) == (0, 0)
    assert cleared["user_vote"] is None

    down = _vote(client, headers, announcement.id, "downvote")
    assert (down["upvotes_count"], down["downvotes_count"]) == (0, 1)
    assert down["user_vote"] == "downvote"


def test_switching_vote_moves_count(client, announcement, member_user, auth_headers) -> None:
    headers = auth_headers(member_user)
    _vote(client, headers, announcement.id, "upvote")
    switched = _vote(client, headers, announcement.id, "downvote")
    assert (switched["upvotes_count"], switched["downvotes_count"]) == (0, 1)


def test_counts_match_recount(
    client, announcement, owner, contributor_user, member_user, auth_headers, db_session
) -> None:
    """After any sequence of votes the counters equal a fresh count of the vote rows."""
    sequence = [
        (owner, "upvote"),
        (member_user, "downvote"),
        (contributor_user, "upvote"),
        (member_user, "upvote"),
        (owner, "upvote"),
        (contributor_user, "downvote"),
    ]
    for actor, vote_type in sequence:
        _vote(client, auth_headers(actor), announcement.id, vote_type)

    db_session.expire_all()
    stored = db_session.get(Announcement, announcement.id)
    assert (stored.upvotes_count, stored.downvotes_count) == _recount(db_session, announcement.id)
    assert (stored.upvotes_count, stored.downvotes_count) == (1, 1)


def test_at_most_one_vote_per_actor(client, announcement, member_user, auth_headers, db_session) -> None:
    headers = auth_headers(member_user)
    for vote_type in ("upvote", "downvote", "downvote", "upvote", "downvote"):
        _vote(client, headers, announcement.id, vote_type)

    db_session.expire_all()
    votes = db_session.scalars(
        select(Vote).where(Vote.announcement_id == announcement.id, Vote.user_id == member_user.id)
    ).all()
    assert len(votes) == 1
    assert votes[0].vote_type == VoteType.DOWNVOTE


def test_outsider_cannot_vote(client, announcement, outsider, auth_headers) -> None:
    """Non-members do not even learn the announcement exists."""
    response = client.post(
        "/api/v1/votes",
        json={"announcement_id": announcement.id, "vote_type": "upvote"},
        headers=auth_headers(outsider),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_invalid_vote_type(client, announcement, member_user, auth_headers) -> None:
    response = client.post(
        "/api/v1/votes",
        json={"announcement_id": announcement.id, "vote_type": "sideways"},
        headers=auth_headers(member_user),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_get_my_vote(client, announcement, member_user, auth_headers) -> None:
    headers = auth_headers(member_user)
    before = client.get(f"/api/v1/votes/{announcement.id}/my-vote", headers=headers)
    assert before.status_code == status.HTTP_200_OK
    assert before.json()["value"]["user_vote"] is None

    _vote(client, headers, announcement.id, "downvote")
    after = client.get(f"/api/v1/votes/{announcement.id}/my-vote", headers=headers)
    assert after.json()["value"]["user_vote"] == "downvote"
    assert after.json()["value"]["downvotes_count"] == 1


def test_deleting_announcement_removes_votes(
    client, announcement, owner, member_user, auth_headers, db_session
) -> None:
    announcement_id = announcement.id
    _vote(client, auth_headers(member_user), announcement_id, "upvote")
    response = client.delete(f"/api/v1/announcements/{announcement_id}", headers=auth_headers(owner))
    assert response.status_code == status.HTTP_200_OK

    db_session.expire_all()
    remaining = db_session.scalar(
        select(func.count()).select_from(Vote).where(Vote.announcement_id == announcement_id)
    )
    assert remaining == 0


def test_vote_insert_conflict_replays_as_update(
    client, announcement, member_user, auth_headers, db_session, monkeypatch
) -> None:
    """A vote row written by a concurrent request turns the insert into an update."""
    db_session.add(
        Vote(announcement_id=announcement.id, user_id=member_user.id, vote_type=VoteType.UPVOTE)
    )
    db_session.commit()

    real_own_vote = voting._own_vote
    lookups = []

    def racing_lookup(db, announcement_id, actor_id):
        lookups.append(actor_id)
        # The first lookup runs before the concurrent insert lands.
        return None if len(lookups) == 1 else real_own_vote(db, announcement_id, actor_id)

    monkeypatch.setattr(voting, "_own_vote", racing_lookup)

    value = _vote(client, auth_headers(member_user), announcement.id, "downvote")
    assert len(lookups) == 2
    assert value["user_vote"] == "downvote"
    assert (value["upvotes_count"], value["downvotes_count"]) == (0, 1)

    db_session.expire_all()
    assert db_session.scalar(
        select(func.count()).select_from(Vote).where(Vote.announcement_id == announcement.id)
    ) == 1
