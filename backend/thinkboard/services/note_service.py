"""
Think Board Backend - Note Service (Owner-Scoped CRUD)
=======================================================

What:  Create, read, update and delete notes on behalf of an authenticated user.
Who:   Called by the /api/notes route handlers with the identity resolved by
       the request gate.

Ownership Model:
    There is no ACL object. Every method takes `user_id` as a mandatory
    argument and every statement carries `WHERE user_id = :user_id`:

        list    SELECT ... WHERE user_id = :uid ORDER BY created_at DESC
        get     SELECT ... WHERE id = :id AND user_id = :uid
        update  UPDATE ... WHERE id = :id AND user_id = :uid RETURNING *
        delete  DELETE ... WHERE id = :id AND user_id = :uid RETURNING id

    A note owned by someone else therefore matches zero rows, exactly like a
    note that does not exist, and both raise the same NotFoundError.

Atomicity:
    Update and delete are single statements, so a concurrent delete cannot
    slip in between a lookup and a write.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

from sqlalchemy import delete, desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from thinkboard.exceptions import DatabaseError, NotFoundError, ValidationError
from thinkboard.models.note import TITLE_MAX_LENGTH, Note
from thinkboard.schemas.common import MessageResponse
from thinkboard.schemas.note import NoteResponse

logger = logging.getLogger(__name__)

NoteId = Union[str, uuid.UUID]


def _parse_note_id(note_id: NoteId) -> uuid.UUID:
    """A malformed id cannot match any note, so it is reported as not found."""
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(str(note_id))
    except ValueError:
        raise NotFoundError(resource="note", resource_id=str(note_id))


def _validate_fields(title: Optional[str], content: Optional[str]) -> Tuple[str, str]:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError(message="Title is required", field="title")
    if not isinstance(content, str) or not content:
        raise ValidationError(message="Content is required", field="content")
    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            message=f"Title must be at most {TITLE_MAX_LENGTH} characters",
            field="title",
        )
    return title, content


class NoteService:
    """
    Business logic for note operations.

    Error Handling Strategy:
        NotFoundError and ValidationError propagate unchanged. SQLAlchemy
        errors are logged and wrapped in DatabaseError so the client only
        ever sees a generic 500.
    """

    async def list_notes(self, db: AsyncSession, user_id: uuid.UUID) -> List[NoteResponse]:
        """
        All notes owned by `user_id`, newest first.

        Served by idx_notes_user_created_at. An empty list is a normal result.
        """
        try:
            result = await db.execute(
                select(Note)
                .where(Note.user_id == user_id)
                .order_by(desc(Note.created_at))
            )
            notes = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing notes for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [NoteResponse.model_validate(note) for note in notes]

    async def get_note(
        self, db: AsyncSession, user_id: uuid.UUID, note_id: NoteId
    ) -> NoteResponse:
        """
        Retrieve one note.

        Raises:
            NotFoundError: No note with this id is owned by `user_id` (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        nid = _parse_note_id(note_id)
        try:
            result = await db.execute(
                select(Note).where(Note.id == nid, Note.user_id == user_id)
            )
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", nid, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(nid)},
            )

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(nid))
        return NoteResponse.model_validate(note)

    async def create_note(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        title: Optional[str],
        content: Optional[str],
    ) -> NoteResponse:
        """
        Persist a new note owned by `user_id`.

        Returns:
            The stored note, including its generated id and timestamps
        """
        title, content = _validate_fields(title, content)

        note = Note(title=title, content=content, user_id=user_id)
        try:
            db.add(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating note for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Note %s created by user %s", note.id, user_id)
        return NoteResponse.model_validate(note)

    async def update_note(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        note_id: NoteId,
        title: Optional[str],
        content: Optional[str],
    ) -> NoteResponse:
        """
        Replace title and content of a note in one statement.

        Raises:
            ValidationError: Title blank or content missing
            NotFoundError: No match on (id, owner)
        """
        nid = _parse_note_id(note_id)
        title, content = _validate_fields(title, content)

        try:
            result = await db.execute(
                update(Note)
                .where(Note.id == nid, Note.user_id == user_id)
                .values(
                    title=title,
                    content=content,
                    updated_at=datetime.now(timezone.utc),
                )
                .returning(Note)
            )
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", nid, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": str(nid)},
            )

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(nid))

        logger.info("Note %s updated by user %s", nid, user_id)
        return NoteResponse.model_validate(note)

    async def delete_note(
        self, db: AsyncSession, user_id: uuid.UUID, note_id: NoteId
    ) -> MessageResponse:
        """
        Hard-delete a note.

        Raises:
            NotFoundError: No match on (id, owner)
        """
        nid = _parse_note_id(note_id)
        try:
            result = await db.execute(
                delete(Note)
                .where(Note.id == nid, Note.user_id == user_id)
                .returning(Note.id)
            )
            deleted_id = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", nid, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(nid)},
            )

        if deleted_id is None:
            raise NotFoundError(resource="note", resource_id=str(nid))

        logger.info("Note %s deleted by user %s", nid, user_id)
        return MessageResponse(message="Note deleted successfully!")


note_service = NoteService()
