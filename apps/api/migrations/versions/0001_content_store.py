"""local content store: content_files + content_commits

Revision ID: 0001_content_store
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_content_store"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_files",
        sa.Column("path", sa.String(), primary_key=True),
        sa.Column("sha", sa.String(), nullable=False),
        sa.Column("content_json", sa.String(), nullable=False),
        sa.Column("updated_at", sa.String(), nullable=False),
    )

    op.create_table(
        "content_commits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sha", sa.String(), nullable=False),
        sa.Column("path", sa.String(), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("author", sa.String(), nullable=False),
        sa.Column("created_at", sa.String(), nullable=False),
    )
    op.create_index("ix_content_commits_sha", "content_commits", ["sha"], unique=True)
    op.create_index("ix_content_commits_path", "content_commits", ["path"], unique=False)
    op.create_index("ix_content_commits_created_at", "content_commits", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_content_commits_created_at", table_name="content_commits")
    op.drop_index("ix_content_commits_path", table_name="content_commits")
    op.drop_index("ix_content_commits_sha", table_name="content_commits")
    op.drop_table("content_commits")
    op.drop_table("content_files")
