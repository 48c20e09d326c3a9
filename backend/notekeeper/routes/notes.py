"""
Notekeeper Backend — Notes Route Handlers
==========================================

What:  CRUD endpoints under /api/notes.
How:   Each handler pulls the path/body, delegates to NoteService and returns
       the result; errors are raised as exceptions and turned into responses
       by the global handlers in main.py.

Route Table:
    GET    /api/notes        → list      200 + array
    GET    /api/notes/{id}   → get       200 | 404
    POST   /api/notes        → create    201 | validation status
    PUT    /api/notes/{id}   → update    200 | 404 | validation status
    DELETE /api/notes/{id}   → delete    200 + removed note | 404
"""

import logging
from typing import List

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.database import get_db_session
from notekeeper.schemas.note import MessageResponse, NoteResponse, NoteWrite
from notekeeper.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

_ERRORS = {
    429: {"description": "Rate limit exceeded", "model": MessageResponse},
    500: {"description": "Server error", "model": MessageResponse},
}
_NOT_FOUND = {404: {"description": "Note not found", "model": MessageResponse}}


@router.get(
    "",
    response_model=List[NoteResponse],
    responses=_ERRORS,
    summary="List all notes, newest first",
)
async def list_notes(db: AsyncSession = Depends(get_db_session)) -> List[NoteResponse]:
    return await note_service.list_notes(db)


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**_NOT_FOUND, **_ERRORS},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    """
    note_id is taken as a plain string: an id that is not a UUID cannot
    exist, so it yields 404 instead of FastAPI's 422.
    """
    return await note_service.get_note(db, note_id)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteResponse,
    responses=_ERRORS,
    summary="Create a note",
)
async def create_note(
    payload: NoteWrite = Body(...),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(db, title=payload.title, content=payload.content)


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**_NOT_FOUND, **_ERRORS},
    summary="Replace a note's title and content",
)
async def update_note(
    note_id: str,
    payload: NoteWrite = Body(...),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(
        db, note_id, title=payload.title, content=payload.content
    )


@router.delete(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**_NOT_FOUND, **_ERRORS},
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    """Hard delete; the response body is the note as it was before removal."""
    return await note_service.delete_note(db, note_id)
