"""
Think Board Backend - Notes Route Handlers
===========================================

What:  CRUD for /api/notes. Every route sits behind the request gate.
How:   The router-level dependency rejects unauthenticated requests before
       any handler runs; each handler then receives the same (cached)
       CurrentUser and passes its id to NoteService as the owner filter.

Caching:
    Note data is private and mutable, so responses carry
    `Cache-Control: private, no-store`.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from thinkboard.database import get_db_session
from thinkboard.dependencies import CurrentUser, get_current_user
from thinkboard.schemas.common import ErrorResponse, MessageResponse
from thinkboard.schemas.note import NoteResponse, NoteWrite
from thinkboard.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/notes",
    tags=["Notes"],
    dependencies=[Depends(get_current_user)],
    responses={
        401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
)

NOT_FOUND = {404: {"description": "Note not found (or not yours)", "model": ErrorResponse}}
INVALID = {400: {"description": "Missing title or content", "model": ErrorResponse}}


def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "private, no-store"


@router.get("", response_model=List[NoteResponse], summary="List your notes, newest first")
async def list_notes(
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    _no_store(response)
    return await note_service.list_notes(db, user_id=user.id)


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses=NOT_FOUND,
    summary="Get one of your notes",
)
async def get_note(
    note_id: str,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    """
    `note_id` is accepted as a plain string: a malformed id is reported as
    404 by the service rather than as a FastAPI 422.
    """
    _no_store(response)
    return await note_service.get_note(db, user_id=user.id, note_id=note_id)


@router.post(
    "",
    status_code=201,
    response_model=NoteResponse,
    responses=INVALID,
    summary="Create a note",
)
async def create_note(
    body: NoteWrite,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(
        db, user_id=user.id, title=body.title, content=body.content
    )


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**NOT_FOUND, **INVALID},
    summary="Replace the title and content of one of your notes",
)
async def update_note(
    note_id: str,
    body: NoteWrite,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(
        db, user_id=user.id, note_id=note_id, title=body.title, content=body.content
    )


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Delete one of your notes",
)
async def delete_note(
    note_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await note_service.delete_note(db, user_id=user.id, note_id=note_id)
