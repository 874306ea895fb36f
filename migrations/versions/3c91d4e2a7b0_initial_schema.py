"""initial_schema

Create the comment threading schema:
- Comments (polymorphic subject, nested replies, denormalized counters)
- Comment likes (one like per user per comment)

Revision ID: 3c91d4e2a7b0
Revises:
Create Date: 2026-10-19 10:12:44.381205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c91d4e2a7b0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # ========================================================================
    # COMMENTS table
    # ========================================================================
    op.create_table(
        "comments",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("author_id", sa.UUID(), nullable=False),
        sa.Column("subject_type", sa.String(255), nullable=False),
        sa.Column("subject_id", sa.String(255), nullable=False),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("likes_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("replies_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(["parent_id"], ["comments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("likes_count >= 0", name="likes_count_non_negative"),
        sa.CheckConstraint("replies_count >= 0", name="replies_count_non_negative"),
    )

    op.create_index(
        "idx_comments_subject_parent_created",
        "comments",
        ["subject_type", "subject_id", "parent_id", "created_at"],
    )
    op.create_index(
        "idx_comments_parent_created", "comments", ["parent_id", "created_at"]
    )
    op.create_index(
        "idx_comments_author_created", "comments", ["author_id", "created_at"]
    )

    # ========================================================================
    # COMMENT_LIKES table
    # ========================================================================
    op.create_table(
        "comment_likes",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("comment_id", sa.UUID(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(["comment_id"], ["comments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "comment_id", name="unique_user_comment_like"),
    )
    op.create_index(
        "idx_comment_likes_comment_created",
        "comment_likes",
        ["comment_id", "created_at"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_comment_likes_comment_created", table_name="comment_likes")
    op.drop_table("comment_likes")

    op.drop_index("idx_comments_author_created", table_name="comments")
    op.drop_index("idx_comments_parent_created", table_name="comments")
    op.drop_index("idx_comments_subject_parent_created", table_name="comments")
    op.drop_table("comments")
