"""
Think Board Backend - Note Service Tests
=========================================

What:  Owner-scoped CRUD against an in-memory database.
How:   Two persisted users (alice, bob); every cross-user call must behave
       exactly like a call on a note that does not exist.

What we test:
    ✅ Create → get round-trip, list newest first, empty list
    ✅ Cross-user get/update/delete → NotFoundError, note left untouched
    ✅ Malformed ids → NotFoundError
    ✅ Title/content validation
    ✅ SQLAlchemy failures wrapped in DatabaseError
    ✅ Owner index is (user_id, created_at DESC)
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError
from sqlalchemy.schema import CreateIndex

from thinkboard.exceptions import DatabaseError, NotFoundError, ValidationError
from thinkboard.models.note import Note
from thinkboard.services.note_service import NoteService


class TestCreateAndRead:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_empty(self, db_session, alice):
        assert await self.service.list_notes(db_session, alice.id) == []

    @pytest.mark.asyncio
    async def test_create_then_get(self, db_session, alice):
        created = await self.service.create_note(db_session, alice.id, "Groceries", "milk, eggs")
        await db_session.commit()

        fetched = await self.service.get_note(db_session, alice.id, str(created.id))

        assert fetched.id == created.id
        assert fetched.title == "Groceries"
        assert fetched.content == "milk, eggs"
        assert fetched.user_id == alice.id
        assert fetched.created_at is not None

    @pytest.mark.asyncio
    async def test_title_is_trimmed(self, db_session, alice):
        created = await self.service.create_note(db_session, alice.id, "  Groceries  ", "milk")
        assert created.title == "Groceries"

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, db_session, alice):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for offset, title in [(0, "first"), (2, "third"), (1, "second")]:
            db_session.add(
                Note(
                    title=title,
                    content="body",
                    user_id=alice.id,
                    created_at=base + timedelta(minutes=offset),
                )
            )
        await db_session.commit()

        notes = await self.service.list_notes(db_session, alice.id)

        assert [n.title for n in notes] == ["third", "second", "first"]

    @pytest.mark.asyncio
    async def test_list_only_returns_own_notes(self, db_session, alice, bob):
        await self.service.create_note(db_session, alice.id, "alice's", "a")
        await self.service.create_note(db_session, bob.id, "bob's", "b")
        await db_session.commit()

        assert [n.title for n in await self.service.list_notes(db_session, alice.id)] == ["alice's"]
        assert [n.title for n in await self.service.list_notes(db_session, bob.id)] == ["bob's"]

    @pytest.mark.asyncio
    async def test_get_missing_note(self, db_session, alice):
        with pytest.raises(NotFoundError, match="Note not found"):
            await self.service.get_note(db_session, alice.id, uuid.uuid4())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["not-a-uuid", "123", "", "../etc/passwd"])
    async def test_malformed_id_is_not_found(self, db_session, alice, bad_id):
        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, alice.id, bad_id)


class TestValidation:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "title,content,field",
        [
            (None, "body", "title"),
            ("", "body", "title"),
            ("   ", "body", "title"),
            ("Title", None, "content"),
            ("Title", "", "content"),
            ("x" * 201, "body", "title"),
        ],
    )
    async def test_invalid_fields_rejected(self, db_session, alice, title, content, field):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(db_session, alice.id, title, content)
        assert exc_info.value.field == field

        count = (await db_session.execute(select(func.count()).select_from(Note))).scalar_one()
        assert count == 0

    @pytest.mark.asyncio
    async def test_update_validates_before_writing(self, db_session, alice):
        note = await self.service.create_note(db_session, alice.id, "Title", "body")
        await db_session.commit()

        with pytest.raises(ValidationError):
            await self.service.update_note(db_session, alice.id, note.id, "", "new body")


class TestOwnership:
    """Another user's note must be indistinguishable from a missing one."""

    def setup_method(self):
        self.service = NoteService()

    async def _alice_note(self, db_session, alice):
        note = await self.service.create_note(db_session, alice.id, "Private", "secret body")
        await db_session.commit()
        return note

    @pytest.mark.asyncio
    async def test_other_user_cannot_get(self, db_session, alice, bob):
        note = await self._alice_note(db_session, alice)

        with pytest.raises(NotFoundError) as foreign:
            await self.service.get_note(db_session, bob.id, note.id)
        with pytest.raises(NotFoundError) as missing:
            await self.service.get_note(db_session, bob.id, uuid.uuid4())

        assert foreign.value.message == missing.value.message

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, db_session, alice, bob):
        note = await self._alice_note(db_session, alice)

        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, bob.id, note.id, "Hijacked", "x")

        unchanged = await self.service.get_note(db_session, alice.id, note.id)
        assert unchanged.title == "Private"
        assert unchanged.content == "secret body"

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, db_session, alice, bob):
        note = await self._alice_note(db_session, alice)

        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, bob.id, note.id)

        assert (await self.service.get_note(db_session, alice.id, note.id)).id == note.id


class TestUpdateAndDelete:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_owner_can_update(self, db_session, alice):
        note = await self.service.create_note(db_session, alice.id, "Draft", "v1")
        await db_session.commit()

        updated = await self.service.update_note(db_session, alice.id, str(note.id), "Final", "v2")
        await db_session.commit()

        assert updated.id == note.id
        assert updated.title == "Final"
        assert updated.content == "v2"
        assert updated.user_id == alice.id

        fetched = await self.service.get_note(db_session, alice.id, note.id)
        assert fetched.title == "Final"

    @pytest.mark.asyncio
    async def test_update_missing_note(self, db_session, alice):
        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, alice.id, uuid.uuid4(), "T", "c")

    @pytest.mark.asyncio
    async def test_owner_can_delete(self, db_session, alice):
        note = await self.service.create_note(db_session, alice.id, "Temp", "x")
        await db_session.commit()

        result = await self.service.delete_note(db_session, alice.id, note.id)
        await db_session.commit()

        assert result.message == "Note deleted successfully!"
        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, alice.id, note.id)

    @pytest.mark.asyncio
    async def test_delete_twice(self, db_session, alice):
        note = await self.service.create_note(db_session, alice.id, "Temp", "x")
        await self.service.delete_note(db_session, alice.id, note.id)

        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, alice.id, note.id)


class TestDatabaseFailures:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_failure_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await self.service.list_notes(mock_db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_create_failure_wrapped(self, mock_db_session):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await self.service.create_note(mock_db_session, uuid.uuid4(), "T", "c")

    @pytest.mark.asyncio
    async def test_delete_failure_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("DELETE", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await self.service.delete_note(mock_db_session, uuid.uuid4(), uuid.uuid4())


class TestNoteIndex:

    def test_owner_index_orders_newest_first(self):
        index = next(i for i in Note.__table__.indexes if i.name == "idx_notes_user_created_at")

        ddl = str(CreateIndex(index).compile(dialect=postgresql.dialect()))

        assert "user_id, created_at DESC" in ddl
