"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

Creates the `notes` table: UUID id, title, content and the two UTC
timestamps, plus the created_at DESC index used by the list endpoint.

Rollback: downgrade() drops the table (all notes are lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
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

    op.create_index(
        "idx_notes_created_at",
        "notes",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
