"""
Think Board Backend - Note Schemas
===================================

What:  API contract for the /api/notes resource.

Design Decision:
    NoteWrite has no owner field. The owner always comes from the verified
    token, so a client cannot even express "create this note for user X".
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class NoteWrite(BaseModel):
    """
    Body of POST /api/notes and PUT /api/notes/{id}.

    Presence and non-emptiness are checked by NoteService so that failures
    surface as the standard 400 validation_error body.
    """
    title: Optional[str] = Field(default=None, description="Note title (required, non-empty)")
    content: Optional[str] = Field(default=None, description="Note body (required)")


class NoteResponse(BaseModel):
    """Full representation of a note, as returned by every notes endpoint."""
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str
    content: str
    user_id: uuid.UUID = Field(description="Owner; always the authenticated caller")
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="When the note was last modified (UTC ISO 8601)")

    model_config = {"from_attributes": True}
