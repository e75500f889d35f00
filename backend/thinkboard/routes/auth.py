"""
Think Board Backend - Auth Route Handlers
==========================================

What:  POST /api/auth/register and POST /api/auth/login (public routes).
How:   Thin handlers; AuthService owns validation, hashing and token issuance.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from thinkboard.config import Settings
from thinkboard.database import get_db_session
from thinkboard.dependencies import get_password_hasher, get_settings
from thinkboard.schemas.auth import CredentialsRequest, LoginResponse
from thinkboard.schemas.common import ErrorResponse, MessageResponse
from thinkboard.security import PasswordHasher
from thinkboard.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing/invalid fields or username taken", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    body: CredentialsRequest,
    db: AsyncSession = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> MessageResponse:
    """Create an account. The response never echoes the password or its hash."""
    return await auth_service.register(
        db, username=body.username, password=body.password, hasher=hasher
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing fields or invalid credentials", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in and receive an access token",
)
async def login(
    body: CredentialsRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> LoginResponse:
    """
    Exchange username/password for a bearer token.

    Unknown usernames and wrong passwords both yield
    `400 {"error": "invalid_credentials", "message": "Invalid credentials"}`.
    """
    return await auth_service.login(
        db, username=body.username, password=body.password, settings=settings, hasher=hasher
    )
