"""
Think Board Backend - Auth Service (Registration & Login)
==========================================================

What:  Registration (uniqueness check + hash + persist) and login
       (lookup + verify + issue token).
Who:   Called by the /api/auth route handlers.

Registration Flow:
    validate input → username taken? → bcrypt hash → INSERT → flush
    The unique constraint on users.username backs up the up-front check, so
    two simultaneous registrations of one name still yield one ConflictError.

Login Flow:
    validate input → SELECT user (with password_hash undeferred)
    → verify (or dummy verify when absent) → mint JWT
    Unknown username and wrong password raise the same exception after the
    same amount of bcrypt work, so neither message nor timing reveals which
    usernames exist.

bcrypt runs in Starlette's threadpool: at 10 rounds a hash costs tens of
milliseconds, which would otherwise stall every other request on the loop.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer
from starlette.concurrency import run_in_threadpool

from thinkboard.config import Settings
from thinkboard.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidCredentialsError,
    ValidationError,
)
from thinkboard.models.user import PASSWORD_MIN_LENGTH, USERNAME_MIN_LENGTH, User
from thinkboard.schemas.auth import LoginResponse, UserPublic
from thinkboard.schemas.common import MessageResponse
from thinkboard.security import PasswordHasher, create_access_token

logger = logging.getLogger(__name__)


def _require_credentials(
    username: Optional[str], password: Optional[str]
) -> Tuple[str, str]:
    """Both fields must be present and non-blank; returns the trimmed username."""
    cleaned = username.strip() if isinstance(username, str) else ""
    if not cleaned or not password:
        raise ValidationError(message="Username and password are required")
    return cleaned, password


class AuthService:
    """
    Stateless registration/login logic.

    Every method receives its session and the app's PasswordHasher (and, for
    login, the settings carrying the signing secret) from the caller.
    """

    async def register(
        self,
        db: AsyncSession,
        username: Optional[str],
        password: Optional[str],
        hasher: PasswordHasher,
    ) -> MessageResponse:
        """
        Create a new account.

        Raises:
            ValidationError: Missing field, username shorter than 3 chars,
                or password shorter than 6 chars
            ConflictError: Username already exists
            DatabaseError: Persistence failed
        """
        username, password = _require_credentials(username, password)

        if len(username) < USERNAME_MIN_LENGTH:
            raise ValidationError(
                message=f"Username must be at least {USERNAME_MIN_LENGTH} characters",
                field="username",
            )
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(
                message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
                field="password",
            )

        try:
            existing = await db.execute(select(User.id).where(User.username == username))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError()

            password_hash = await run_in_threadpool(hasher.hash, password)
            user = User(username=username, password_hash=password_hash)
            db.add(user)
            await db.flush()

        except IntegrityError:
            # Lost a race against a concurrent registration of the same name
            raise ConflictError()
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Registered user %s (%s)", user.id, username)
        return MessageResponse(message="User registered successfully")

    async def login(
        self,
        db: AsyncSession,
        username: Optional[str],
        password: Optional[str],
        settings: Settings,
        hasher: PasswordHasher,
    ) -> LoginResponse:
        """
        Authenticate and issue an access token.

        Returns:
            LoginResponse with the token and a sanitized user view

        Raises:
            ValidationError: Missing field
            InvalidCredentialsError: Unknown username or wrong password
            DatabaseError: Lookup failed
        """
        username, password = _require_credentials(username, password)

        try:
            result = await db.execute(
                select(User)
                .options(undefer(User.password_hash))
                .where(User.username == username)
            )
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not log in. Please try again.",
                context={"error_type": type(e).__name__},
            )

        if user is None:
            await run_in_threadpool(hasher.dummy_verify)
            logger.info("Failed login for unknown username")
            raise InvalidCredentialsError()

        if not await run_in_threadpool(hasher.verify, password, user.password_hash):
            logger.info("Failed login for user %s", user.id)
            raise InvalidCredentialsError()

        token = create_access_token(
            user_id=user.id,
            username=user.username,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.access_token_expire_minutes,
        )
        logger.info("User %s logged in", user.id)
        return LoginResponse(token=token, user=UserPublic(id=user.id, username=user.username))


auth_service = AuthService()
