"""
Notekeeper Backend — Note Service Tests
========================================

Two layers:
    - Mocked AsyncSession: error translation and call sequencing
    - In-memory SQLite session: round trips through the real model

What we test:
    ✅ create → get returns the same note with createdAt == updatedAt
    ✅ update replaces both fields and moves updatedAt strictly forward
    ✅ delete → get raises NotFoundError
    ✅ list is newest first
    ✅ unknown and malformed ids always raise NotFoundError
    ✅ blank / missing fields raise ValidationError
    ✅ SQLAlchemy failures surface as DatabaseError
"""

from datetime import datetime, timedelta, timezone
from itertools import count
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from notekeeper.exceptions import DatabaseError, NotFoundError, ValidationError
from notekeeper.services.note_service import NoteService


def ticking_clock(start=None, step=timedelta(seconds=1)):
    start = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
    ticks = count()
    return lambda: start + step * next(ticks)


def mock_note(data):
    # Only the note fields; camelCase alias lookups must miss
    return SimpleNamespace(**data)


class TestNoteServiceMocked:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_get_note_found(self, mock_db_session, sample_note_data):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = mock_note(sample_note_data)
        mock_db_session.execute.return_value = mock_result

        result = await self.service.get_note(mock_db_session, str(sample_note_data["id"]))

        assert result.id == sample_note_data["id"]
        assert result.title == "Groceries"
        assert result.created_at == sample_note_data["created_at"]
        assert result.updated_at == sample_note_data["updated_at"]

    @pytest.mark.asyncio
    async def test_get_note_not_found(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_note(mock_db_session, str(uuid4()))

        assert exc_info.value.message == "Note not found"

    @pytest.mark.asyncio
    async def test_malformed_id_never_queries(self, mock_db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_note(mock_db_session, "not-a-uuid")

        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_rejects_missing_title(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(mock_db_session, title=None, content="body")

        assert exc_info.value.field == "title"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title, content, field", [
        ("", "body", "title"),
        ("   ", "body", "title"),
        ("title", "", "content"),
        ("title", None, "content"),
    ])
    async def test_create_rejects_blank_fields(self, mock_db_session, title, content, field):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(mock_db_session, title=title, content=content)

        assert exc_info.value.field == field

    @pytest.mark.asyncio
    async def test_create_commits_and_sets_equal_timestamps(self, mock_db_session):
        now = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
        service = NoteService(clock=lambda: now)

        def assign_id(note):
            note.id = uuid4()

        mock_db_session.add.side_effect = assign_id

        result = await service.create_note(mock_db_session, title="A", content="B")

        mock_db_session.commit.assert_awaited_once()
        assert result.created_at == now
        assert result.updated_at == now

    @pytest.mark.asyncio
    async def test_update_unknown_id_wins_over_invalid_body(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError):
            await self.service.update_note(mock_db_session, str(uuid4()), title="", content=None)

    @pytest.mark.asyncio
    async def test_list_wraps_database_errors(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )

        with pytest.raises(DatabaseError):
            await self.service.list_notes(mock_db_session)

    @pytest.mark.asyncio
    async def test_create_rolls_back_on_commit_failure(self, mock_db_session):
        mock_db_session.commit = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        )

        with pytest.raises(DatabaseError):
            await self.service.create_note(mock_db_session, title="A", content="B")

        mock_db_session.rollback.assert_awaited_once()


class TestNoteServiceSQLite:

    @pytest.mark.asyncio
    async def test_create_then_get(self, db_session):
        service = NoteService()
        created = await service.create_note(db_session, title="A", content="B")

        fetched = await service.get_note(db_session, str(created.id))

        assert fetched.title == "A"
        assert fetched.content == "B"
        assert fetched.created_at == fetched.updated_at
        assert fetched == created

    @pytest.mark.asyncio
    async def test_update_replaces_fields_and_bumps_updated_at(self, db_session):
        service = NoteService(clock=ticking_clock())
        created = await service.create_note(db_session, title="A", content="B")

        updated = await service.update_note(db_session, str(created.id), title="A2", content="B2")
        fetched = await service.get_note(db_session, str(created.id))

        assert fetched.title == "A2"
        assert fetched.content == "B2"
        assert fetched.id == created.id
        assert fetched.created_at == created.created_at
        assert fetched.updated_at == updated.updated_at
        assert fetched.updated_at > created.updated_at

    @pytest.mark.asyncio
    async def test_updated_at_advances_when_clock_stands_still(self, db_session):
        frozen = datetime(2026, 5, 5, tzinfo=timezone.utc)
        service = NoteService(clock=lambda: frozen)
        created = await service.create_note(db_session, title="A", content="B")

        first = await service.update_note(db_session, str(created.id), title="A", content="C")
        second = await service.update_note(db_session, str(created.id), title="A", content="D")

        assert created.updated_at < first.updated_at < second.updated_at
        assert second.created_at == frozen

    @pytest.mark.asyncio
    async def test_update_requires_both_fields(self, db_session):
        service = NoteService()
        created = await service.create_note(db_session, title="A", content="B")

        with pytest.raises(ValidationError):
            await service.update_note(db_session, str(created.id), title="only title", content=None)

        fetched = await service.get_note(db_session, str(created.id))
        assert fetched.content == "B"

    @pytest.mark.asyncio
    async def test_delete_then_get_raises_not_found(self, db_session):
        service = NoteService()
        created = await service.create_note(db_session, title="A", content="B")

        removed = await service.delete_note(db_session, str(created.id))

        assert removed.id == created.id
        assert removed.title == "A"
        with pytest.raises(NotFoundError):
            await service.get_note(db_session, str(created.id))

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, db_session):
        service = NoteService(clock=ticking_clock())
        for i in range(4):
            await service.create_note(db_session, title=f"t{i}", content=f"c{i}")

        notes = await service.list_notes(db_session)

        assert [n.title for n in notes] == ["t3", "t2", "t1", "t0"]
        stamps = [n.created_at for n in notes]
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.asyncio
    async def test_list_empty(self, db_session):
        assert await NoteService().list_notes(db_session) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("note_id", [str(uuid4()), "12345", "zzz"])
    async def test_single_id_operations_report_not_found(self, db_session, note_id):
        service = NoteService()

        with pytest.raises(NotFoundError):
            await service.get_note(db_session, note_id)
        with pytest.raises(NotFoundError):
            await service.update_note(db_session, note_id, title="x", content="y")
        with pytest.raises(NotFoundError):
            await service.delete_note(db_session, note_id)
