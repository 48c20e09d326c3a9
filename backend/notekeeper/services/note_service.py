"""
Notekeeper Backend — Note Service (Business Logic)
===================================================

What:  CRUD over Note records: list, get, create, update, delete.
Why:   Keeps validation, identity and timestamp rules out of the routes.
How:   Each method receives an AsyncSession, touches at most one note,
       and commits its own write.
Who:   Called by the /api/notes route handlers.

Error Translation:
    - Unknown or malformed id         → NotFoundError
    - Missing / blank title or content → ValidationError
    - Any SQLAlchemyError              → DatabaseError (details logged only)

Design Decision:
    NoteService is stateless: it receives the db session for each call.
    There is no locking and no version check; concurrent writers to the
    same note resolve as last-writer-wins at the database.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.exceptions import DatabaseError, NotFoundError, ValidationError
from notekeeper.models.note import Note, utcnow
from notekeeper.schemas.note import NoteResponse

logger = logging.getLogger(__name__)


def _require_text(field: str, value: Optional[str]) -> str:
    if value is None:
        raise ValidationError(message=f"'{field}' is required", field=field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message=f"'{field}' must be a non-empty string", field=field)
    return value


def _parse_note_id(note_id: str) -> UUID:
    """Malformed ids can never match a note, so they are reported as not found."""
    try:
        return UUID(str(note_id))
    except ValueError:
        raise NotFoundError(resource="Note", resource_id=str(note_id))


class NoteService:
    """
    Business logic layer for note operations.

    Every single-id method resolves the note before looking at the payload,
    so a nonexistent id is always reported as NotFoundError.
    """

    def __init__(self, clock=utcnow):
        self._clock = clock

    async def list_notes(self, db: AsyncSession) -> List[NoteResponse]:
        """
        Return every note, newest first.

        Query plan:
            SELECT * FROM notes ORDER BY created_at DESC
            → idx_notes_created_at
        """
        try:
            result = await db.execute(select(Note).order_by(desc(Note.created_at)))
            notes = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes",
                context={"error_type": type(e).__name__},
            ) from e

        return [NoteResponse.model_validate(note) for note in notes]

    async def get_note(self, db: AsyncSession, note_id: str) -> NoteResponse:
        """
        Retrieve a single note by ID.

        Raises:
            NotFoundError: No note with this id, or the id is not a UUID (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        note = await self._load(db, note_id)
        return NoteResponse.model_validate(note)

    async def create_note(
        self,
        db: AsyncSession,
        title: Optional[str],
        content: Optional[str],
    ) -> NoteResponse:
        """
        Validate and insert a new note.

        The id and both timestamps are assigned here; created_at and
        updated_at start out identical.

        Raises:
            ValidationError: title or content missing/blank
            DatabaseError: insert failed
        """
        title = _require_text("title", title)
        content = _require_text("content", content)

        now = self._clock()
        note = Note(title=title, content=content, created_at=now, updated_at=now)

        try:
            db.add(note)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Note created: %s", note.id)
        return NoteResponse.model_validate(note)

    async def update_note(
        self,
        db: AsyncSession,
        note_id: str,
        title: Optional[str],
        content: Optional[str],
    ) -> NoteResponse:
        """
        Replace title and content of an existing note.

        This is a full replacement, not a patch: both fields must be sent.
        updated_at always moves forward, even if the clock has not advanced
        since the previous write.

        Raises:
            NotFoundError: unknown or malformed id (checked before the body)
            ValidationError: title or content missing/blank
            DatabaseError: update failed
        """
        note = await self._load(db, note_id)

        title = _require_text("title", title)
        content = _require_text("content", content)

        note.title = title
        note.content = content
        note.updated_at = self._next_updated_at(note.updated_at)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the note",
                context={"note_id": str(note_id), "error_type": type(e).__name__},
            ) from e

        logger.info("Note updated: %s", note.id)
        return NoteResponse.model_validate(note)

    async def delete_note(self, db: AsyncSession, note_id: str) -> NoteResponse:
        """
        Permanently remove a note and return what was removed.

        Raises:
            NotFoundError: unknown or malformed id
            DatabaseError: delete failed
        """
        note = await self._load(db, note_id)
        removed = NoteResponse.model_validate(note)

        try:
            await db.delete(note)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the note",
                context={"note_id": str(note_id), "error_type": type(e).__name__},
            ) from e

        logger.info("Note deleted: %s", removed.id)
        return removed

    async def _load(self, db: AsyncSession, note_id: str) -> Note:
        """Fetch a note by primary key or raise NotFoundError."""
        parsed_id = _parse_note_id(note_id)

        try:
            result = await db.execute(select(Note).where(Note.id == parsed_id))
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note",
                context={"note_id": str(note_id), "error_type": type(e).__name__},
            ) from e

        if note is None:
            raise NotFoundError(resource="Note", resource_id=str(note_id))
        return note

    def _next_updated_at(self, previous: datetime) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            return previous + timedelta(microseconds=1)
        return now


note_service = NoteService()
