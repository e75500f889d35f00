"""
Think Board Backend - Note SQLAlchemy Model
============================================

What:  ORM model for the `notes` table (the note store).

Table Design Rationale:
    - user_id: the owner. Every query in NoteService filters on it; there is
      no separate permission table.
    - ON DELETE CASCADE: a removed user cannot leave orphaned notes behind
    - created_at/updated_at: UTC with timezone

    Index on (user_id, created_at DESC):
        Serves the list query "this user's notes, newest first" without a sort.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from thinkboard.database import Base

TITLE_MAX_LENGTH = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A personal note belonging to exactly one user.

    Lifecycle:
        Created, read, updated and hard-deleted by its owner only.
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning user; the only access-control input",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id={self.user_id}, title='{self.title}')>"


# Built from table columns: a DESC key needs a column expression
Index(
    "idx_notes_user_created_at",
    Note.__table__.c.user_id,
    Note.__table__.c.created_at.desc(),
)
