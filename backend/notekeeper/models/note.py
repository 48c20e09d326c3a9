"""
Notekeeper Backend — Note SQLAlchemy Model
===========================================

What:  ORM model representing the `notes` table.
Why:   Maps Python objects to database rows for type-safe database operations.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - UUID primary key: opaque, globally unique, assigned on insert
    - title / content: TEXT, NOT NULL (non-empty is enforced by the service)
    - created_at: set once on insert, never written again
    - updated_at: equal to created_at on insert, refreshed on every update

    Index on created_at DESC serves the only listing order (newest first).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from notekeeper.database import Base


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always round-trips as UTC.

    PostgreSQL stores TIMESTAMP WITH TIME ZONE natively; SQLite drops the
    offset, so naive values read back are tagged as UTC here.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError("naive datetime is not allowed for UTCDateTime columns")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A titled note.

    Lifecycle:
        1. Inserted by NoteService.create_note (created_at == updated_at)
        2. Title/content replaced by NoteService.update_note (updated_at bumped)
        3. Hard-deleted by NoteService.delete_note
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, created_at='{self.created_at}')>"


# Newest-first listing; attaches to the notes table on creation
Index("idx_notes_created_at", Note.created_at.desc())
