"""
Think Board Backend - Password Hashing & Access Tokens
=======================================================

What:  The two cryptographic primitives the auth flow is built from:
       1. bcrypt password hashing (passlib CryptContext)
       2. HS256 JWT issuance and verification (python-jose)
How:   Nothing here reads global configuration. The hasher is an object
       built with its cost factor; the token functions take the signing
       secret, algorithm and lifetime from the caller.

Token claims:
    sub       user id (string form of the UUID)
    username  login name at issuance time
    iat       issued-at (seconds since epoch)
    exp       expiry (iat + lifetime)
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError
from passlib.context import CryptContext

from thinkboard.exceptions import AuthenticationError

DEFAULT_TOKEN_LIFETIME_MINUTES = 60
REQUIRED_CLAIMS = ("sub", "username", "iat", "exp")


class PasswordHasher:
    """
    bcrypt hashing with a fixed cost factor.

    The app factory builds one per app (`app.state.password_hasher`) from
    `Settings.bcrypt_rounds`, so two apps never share a cost setting.
    Every hash() call generates a fresh random salt.
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time check of a plaintext password against a stored hash."""
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Malformed or unrecognised hash in the store
            return False

    def dummy_verify(self) -> None:
        """
        Burn the same CPU time as a real verification.

        Login calls this when the username does not exist so that response
        time does not reveal which usernames are registered.
        """
        self._context.dummy_verify()


# ══════════════════════════════════════════════════════════════════════════
# Access Tokens
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenPayload:
    """Decoded, verified identity carried by an access token."""

    user_id: uuid.UUID
    username: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(
    user_id: uuid.UUID,
    username: str,
    secret: str,
    algorithm: str = "HS256",
    expires_minutes: int = DEFAULT_TOKEN_LIFETIME_MINUTES,
    issued_at: Optional[datetime] = None,
) -> str:
    """
    Mint a signed access token.

    Args:
        user_id: Identity to embed as `sub`
        username: Embedded for display; never used for lookups
        secret: HMAC signing key (must be non-empty)
        algorithm: JWS algorithm, HS256 unless configured otherwise
        expires_minutes: Lifetime; the token is rejected once it elapses
        issued_at: Issuance time, defaults to now (UTC)

    Returns:
        Compact JWS string suitable for an `Authorization: Bearer` header
    """
    if not secret:
        raise ValueError("A signing secret is required to issue tokens")

    iat = issued_at or datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "username": username,
        "iat": int(iat.timestamp()),
        "exp": int((iat + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> TokenPayload:
    """
    Verify signature, algorithm and expiry, and return the embedded identity.

    Raises:
        AuthenticationError: The token is malformed, tampered with, signed
            with another key/algorithm, expired, or lacks a required claim.
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require_" + claim: True for claim in ("iat", "exp", "sub")},
        )
    except ExpiredSignatureError:
        raise AuthenticationError("Not authorized, token expired")
    except JOSEError:
        raise AuthenticationError()

    if any(claim not in claims for claim in REQUIRED_CLAIMS):
        raise AuthenticationError()

    try:
        user_id = uuid.UUID(claims["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError()

    return TokenPayload(
        user_id=user_id,
        username=str(claims["username"]),
        issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    )
