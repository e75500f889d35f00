"""
Think Board Backend - User SQLAlchemy Model
============================================

What:  ORM model for the `users` table (the credential store).

Table Design Rationale:
    - UUID primary key: non-sequential, so user ids cannot be enumerated
    - username: unique constraint enforces uniqueness at the store level,
      which also catches two concurrent registrations of the same name
    - password_hash: deferred, so ordinary queries never load it; login
      must ask for it explicitly with `undefer(User.password_hash)`
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from thinkboard.database import Base

USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered account.

    Lifecycle:
        Created at registration; never updated or deleted by the API.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Stored trimmed; the service layer strips whitespace before insert/lookup
    username: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Unique login name (at least 3 chars, trimmed, no upper bound)",
    )

    # bcrypt output is 60 chars; 255 leaves room for a future scheme
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        deferred=True,
        comment="bcrypt hash; the plaintext password is never stored",
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
        # password_hash deliberately omitted
        return f"<User(id={self.id}, username='{self.username}')>"
