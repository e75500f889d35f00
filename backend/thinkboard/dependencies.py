"""
Think Board Backend - Request Dependencies
===========================================

What:  FastAPI dependencies shared by the routers, including the request gate.

Request Gate (get_current_user):
    1. Read `Authorization: Bearer <token>`; absent or another scheme → 401
    2. Verify signature, algorithm and expiry with the app's signing secret → 401
    3. Attach the identity to `request.state.user` and hand it to the handler

    The gate is stateless: it never touches the database, and a token stays
    valid until it expires.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from thinkboard.config import Settings
from thinkboard.exceptions import AuthenticationError
from thinkboard.security import PasswordHasher, decode_access_token

# auto_error=False: failures are raised as AuthenticationError so they share
# the application's error body instead of FastAPI's default.
bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Access token returned by POST /api/auth/login",
)


@dataclass(frozen=True)
class CurrentUser:
    """Identity resolved from a verified access token."""

    id: uuid.UUID
    username: str


def get_settings(request: Request) -> Settings:
    """The Settings instance the running app was built with."""
    return request.app.state.settings


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Resolve the caller's identity or reject the request.

    Raises:
        AuthenticationError: Missing/malformed header, bad signature, expired token
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    settings = get_settings(request)
    payload = decode_access_token(
        credentials.credentials,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )

    user = CurrentUser(id=payload.user_id, username=payload.username)
    request.state.user = user
    return user
