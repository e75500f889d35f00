"""
Think Board Backend - Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions, one per failure class the API exposes.
How:   Each exception carries a client-safe message and an optional context
       dict. Global handlers (registered in main.py) map them to HTTP status
       codes and a uniform JSON body.
Who:   Raised by services, the request gate and middleware.

Exception Hierarchy:
    ThinkBoardError (base)
    ├── ValidationError              → 400 Bad Request
    ├── ConflictError                → 400 Bad Request (duplicate username)
    ├── AuthenticationError          → 401 Unauthorized (request gate)
    │   └── InvalidCredentialsError  → 400 Bad Request (login)
    ├── NotFoundError                → 404 Not Found (absent OR not owned)
    ├── RateLimitExceededError       → 429 Too Many Requests
    ├── DatabaseError                → 500 Internal Server Error
    └── ConfigurationError           → startup failure, never an HTTP response
"""

from typing import Any, Dict, Optional


class ThinkBoardError(Exception):
    """
    Base exception for all Think Board application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ThinkBoardError):
    """
    Raised when client input is missing or malformed.

    HTTP: 400 Bad Request. Request-body schema failures are remapped to this
    status too, so clients see one code for every input problem.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(ThinkBoardError):
    """Raised when a unique value (the username) is already taken. HTTP 400."""

    def __init__(
        self,
        message: str = "Username already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(ThinkBoardError):
    """
    Raised by the request gate when the bearer token is missing, malformed,
    badly signed or expired.

    HTTP: 401 Unauthorized with `WWW-Authenticate: Bearer`.
    The message never says which check failed.
    """

    def __init__(
        self,
        message: str = "Not authorized, token missing or invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(AuthenticationError):
    """
    Raised by login for an unknown username OR a wrong password.

    Both cases share this exact message and status (400) so the response does
    not reveal whether the username exists.
    """

    MESSAGE = "Invalid credentials"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=self.MESSAGE, context=context)


class NotFoundError(ThinkBoardError):
    """
    Raised when a requested resource does not exist for the caller.

    HTTP: 404 Not Found.
    A note owned by another user is reported exactly like a missing one.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(ThinkBoardError):
    """
    Raised when the request rate limit is exceeded.

    HTTP: 429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(ThinkBoardError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error. The client always receives a generic
    message; the context (exception type, ids) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(ThinkBoardError):
    """Raised at startup when required settings are missing or unsafe."""
