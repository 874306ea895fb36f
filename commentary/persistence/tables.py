"""SQLAlchemy table definitions for comments.

These table definitions are used for classical ORM mapping.
They match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# COMMENTS TABLE
# ============================================================================
comments_table = Table(
    "comments",
    metadata,
    Column("id", UUID, primary_key=True),
    Column("author_id", UUID, nullable=False),  # Owned by the host application
    Column("subject_type", String(255), nullable=False),  # Polymorphic subject
    Column("subject_id", String(255), nullable=False),
    Column(
        "parent_id", UUID, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    ),
    Column("content", Text, nullable=False),
    Column("likes_count", Integer, nullable=False, server_default="0"),
    Column("replies_count", Integer, nullable=False, server_default="0"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    CheckConstraint("likes_count >= 0", name="likes_count_non_negative"),
    CheckConstraint("replies_count >= 0", name="replies_count_non_negative"),
)

Index(
    "idx_comments_subject_parent_created",
    comments_table.c.subject_type,
    comments_table.c.subject_id,
    comments_table.c.parent_id,
    comments_table.c.created_at,
)
Index(
    "idx_comments_parent_created",
    comments_table.c.parent_id,
    comments_table.c.created_at,
)
Index(
    "idx_comments_author_created",
    comments_table.c.author_id,
    comments_table.c.created_at,
)

# ============================================================================
# COMMENT LIKES TABLE
# ============================================================================
comment_likes_table = Table(
    "comment_likes",
    metadata,
    Column("id", UUID, primary_key=True),
    Column("user_id", UUID, nullable=False),
    Column(
        "comment_id",
        UUID,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    # Duplicate likes are rejected here, not by a check-then-insert
    UniqueConstraint("user_id", "comment_id", name="unique_user_comment_like"),
)

Index(
    "idx_comment_likes_comment_created",
    comment_likes_table.c.comment_id,
    comment_likes_table.c.created_at,
)
