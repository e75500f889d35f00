"""
Think Board Backend - Authentication Schemas
=============================================

What:  Request/response bodies for /api/auth/register and /api/auth/login.

Why the request fields are Optional:
    A missing username or password is a business-rule failure reported as a
    400 ValidationError by AuthService, with the same wording for register
    and login. Declaring them required would let FastAPI answer first with its
    own field-level error list.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    """Body of both register and login."""
    username: Optional[str] = Field(default=None, description="Login name (at least 3 chars)")
    password: Optional[str] = Field(default=None, description="Password (at least 6 chars)")


class UserPublic(BaseModel):
    """Sanitized user view. Never carries the password hash."""
    id: uuid.UUID = Field(description="User identifier")
    username: str = Field(description="Login name")

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    token: str = Field(description="Bearer access token (JWT, expires after 1 hour by default)")
    user: UserPublic
