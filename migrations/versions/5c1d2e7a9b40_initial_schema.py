"""initial schema

Revision ID: 5c1d2e7a9b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1d2e7a9b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    """Create actors, platform roles, groups, memberships, announcements, votes and tags."""
    op.create_table(
        "actor",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "platform_role",
        sa.Column("actor_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("granted_by", sa.String(length=64), nullable=True),
        _timestamp("granted_at"),
        sa.CheckConstraint("role = 'platform_admin'", name="ck_platform_role_role"),
        sa.ForeignKeyConstraint(["actor_id"], ["actor.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["granted_by"], ["actor.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("actor_id"),
    )

    op.create_table(
        "groups",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("creator_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("code", sa.String(length=12), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False),
        _timestamp("approved_at", nullable=True),
        sa.Column("approved_by", sa.String(length=64), nullable=True),
        _timestamp("rejected_at", nullable=True),
        sa.Column("rejected_by", sa.String(length=64), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "length(name) >= 3 AND length(name) <= 100",
            name="ck_groups_name_length",
        ),
        sa.CheckConstraint(
            "NOT (approved AND rejected_at IS NOT NULL)",
            name="ck_groups_single_terminal_state",
        ),
        sa.ForeignKeyConstraint(["creator_id"], ["actor.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["approved_by"], ["actor.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["rejected_by"], ["actor.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_groups_creator_id", "groups", ["creator_id"])
    op.create_index("ix_groups_pending", "groups", ["approved", "rejected_at"])

    op.create_table(
        "group_member",
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "role",
            sa.Enum(
                "admin",
                "contributor",
                "member",
                name="group_role",
                native_enum=False,
                create_constraint=True,
                length=16,
            ),
            nullable=False,
        ),
        _timestamp("joined_at"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["actor.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("group_id", "user_id"),
    )
    op.create_index("ix_group_member_user_id", "group_member", ["user_id"])

    op.create_table(
        "announcement",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("author_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("deadline", nullable=True),
        sa.Column("is_pinned", sa.Boolean(), nullable=False),
        sa.Column("is_archived", sa.Boolean(), nullable=False),
        sa.Column("upvotes_count", sa.Integer(), nullable=False),
        sa.Column("downvotes_count", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "length(title) >= 3 AND length(title) <= 200",
            name="ck_announcement_title_length",
        ),
        sa.CheckConstraint(
            "length(content) >= 1 AND length(content) <= 50000",
            name="ck_announcement_content_length",
        ),
        sa.CheckConstraint(
            "upvotes_count >= 0 AND downvotes_count >= 0",
            name="ck_announcement_counts_non_negative",
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["actor.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_announcement_group_id", "announcement", ["group_id"])
    op.create_index("ix_announcement_author_id", "announcement", ["author_id"])
    op.create_index(
        "ix_announcement_group_pinned",
        "announcement",
        ["group_id", "is_pinned", "created_at"],
    )

    op.create_table(
        "vote",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("announcement_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "vote_type",
            sa.Enum(
                "upvote",
                "downvote",
                name="vote_type",
                native_enum=False,
                create_constraint=True,
                length=16,
            ),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["announcement_id"], ["announcement.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["actor.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("announcement_id", "user_id", name="uq_vote_announcement_user"),
    )
    op.create_index("ix_vote_announcement_id", "vote", ["announcement_id"])
    op.create_index("ix_vote_user_id", "vote", ["user_id"])

    op.create_table(
        "tag",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "length(title) >= 1 AND length(title) <= 50",
            name="ck_tag_title_length",
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["actor.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("group_id", "title", name="uq_tag_group_title"),
    )
    op.create_index("ix_tag_group_id", "tag", ["group_id"])

    op.create_table(
        "announcement_tag",
        sa.Column("announcement_id", sa.String(length=36), nullable=False),
        sa.Column("tag_id", sa.String(length=36), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["announcement_id"], ["announcement.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tag.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("announcement_id", "tag_id"),
    )
    op.create_index("ix_announcement_tag_tag_id", "announcement_tag", ["tag_id"])


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_index("ix_announcement_tag_tag_id", table_name="announcement_tag")
    op.drop_table("announcement_tag")
    op.drop_index("ix_tag_group_id", table_name="tag")
    op.drop_table("tag")
    op.drop_index("ix_vote_user_id", table_name="vote")
    op.drop_index("ix_vote_announcement_id", table_name="vote")
    op.drop_table("vote")
    op.drop_index("ix_announcement_group_pinned", table_name="announcement")
    op.drop_index("ix_announcement_author_id", table_name="announcement")
    op.drop_index("ix_announcement_group_id", table_name="announcement")
    op.drop_table("announcement")
    op.drop_index("ix_group_member_user_id", table_name="group_member")
    op.drop_table("group_member")
    op.drop_index("ix_groups_pending", table_name="groups")
    op.drop_index("ix_groups_creator_id", table_name="groups")
    op.drop_table("groups")
    op.drop_table("platform_role")
    op.drop_table("actor")
