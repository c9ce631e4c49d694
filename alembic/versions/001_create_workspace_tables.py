"""Create workspace tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  folders, documents, notes, audios, todos, notifications and chats.
How:   Folder references from content use RESTRICT so a non-empty folder
       cannot be removed at the database level either; todos fall back to
       no folder (SET NULL).

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _owned_columns():
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def _folder_column(ondelete: str) -> sa.Column:
    return sa.Column(
        "folder_id",
        sa.Uuid(),
        sa.ForeignKey("folders.id", ondelete=ondelete),
        nullable=True,
    )


def upgrade() -> None:
    op.create_table(
        "folders",
        *_owned_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "parent_id",
            sa.Uuid(),
            sa.ForeignKey("folders.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("safe_artifact", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_folders_user_id", "folders", ["user_id"])
    op.create_index("idx_folders_user_name", "folders", ["user_id", "name"])
    op.create_index("idx_folders_parent", "folders", ["parent_id"])

    op.create_table(
        "documents",
        *_owned_columns(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("file_url", sa.String(1024), nullable=False),
        sa.Column("file_type", sa.String(20), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("artifact_type", sa.String(100), nullable=True),
        sa.Column("priority", sa.String(20), nullable=True),
        _folder_column("RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_documents_user_id", "documents", ["user_id"])
    op.create_index("ix_documents_folder_id", "documents", ["folder_id"])
    op.create_index("idx_documents_user_updated", "documents", ["user_id", "updated_at"])

    op.create_table(
        "notes",
        *_owned_columns(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("template", sa.String(100), nullable=True),
        sa.Column("meeting_type", sa.String(50), nullable=True),
        sa.Column("participants", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("linked_docs", sa.JSON(), nullable=False),
        _folder_column("RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notes_user_id", "notes", ["user_id"])
    op.create_index("ix_notes_folder_id", "notes", ["folder_id"])
    op.create_index("idx_notes_user_updated", "notes", ["user_id", "updated_at"])

    op.create_table(
        "audios",
        *_owned_columns(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("file_url", sa.String(1024), nullable=False),
        sa.Column("duration", sa.Float(), nullable=False),
        sa.Column("transcription", sa.Text(), nullable=True),
        sa.Column("meeting_type", sa.String(50), nullable=True),
        sa.Column("participants", sa.JSON(), nullable=False),
        _folder_column("RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audios_user_id", "audios", ["user_id"])
    op.create_index("ix_audios_folder_id", "audios", ["folder_id"])
    op.create_index("idx_audios_user_updated", "audios", ["user_id", "updated_at"])

    op.create_table(
        "todos",
        *_owned_columns(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("priority", sa.String(10), server_default=sa.text("'Medium'"), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "deadline_notification_sent",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("source_id", sa.String(100), nullable=True),
        sa.Column("source_type", sa.String(50), nullable=True),
        _folder_column("SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_todos_user_id", "todos", ["user_id"])
    op.create_index(
        "idx_todos_deadline_sweep",
        "todos",
        ["user_id", "status", "deadline_notification_sent"],
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_notifications_user_created", "notifications", ["user_id", "created_at"]
    )

    op.create_table(
        "chats",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("messages", sa.JSON(), nullable=False),
        sa.Column("context", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_chats_user_updated", "chats", ["user_id", "updated_at"])


def downgrade() -> None:
    """Drops every table, children before folders."""
    for table in ("chats", "notifications", "todos", "audios", "notes", "documents"):
        op.drop_table(table)
    op.drop_index("idx_folders_parent", table_name="folders")
    op.drop_index("idx_folders_user_name", table_name="folders")
    op.drop_index("ix_folders_user_id", table_name="folders")
    op.drop_table("folders")
