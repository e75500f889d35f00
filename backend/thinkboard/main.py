"""
Think Board Backend - FastAPI Application Factory
=================================================

What:  Builds and configures the FastAPI application.
How:   `create_app(settings)` wires middleware, exception handlers and
       routers around an explicit Settings instance. The module-level `app`
       (for `uvicorn thinkboard.main:app`) uses the environment settings.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────┐ ┌────────┐ ┌─────────┐ ┌────────────┐    │
    │  │ CORS │→│ Req ID │→│ Logging │→│ Rate Limit │    │
    │  └──────┘ └────────┘ └─────────┘ └────────────┘    │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────────┐ ┌─────────┐  │
    │  │ /api/auth/*  │ │ /api/notes (gate)│ │ /health │  │
    │  └──────────────┘ └──────────────────┘ └─────────┘  │
    └─────────────────────────────────────────────────────┘

Per-app state (no module-level singletons):
    app.state.settings         Settings the app was built with (signing secret)
    app.state.rate_limiter     The RateLimiter shared by all requests to this app
    app.state.password_hasher  PasswordHasher built with Settings.bcrypt_rounds

Lifecycle:
    Startup:  configure logging, validate settings (refuse to start without
              JWT_SECRET)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from thinkboard import __version__
from thinkboard.config import Settings, settings as default_settings
from thinkboard.database import dispose_engine
from thinkboard.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    DatabaseError,
    InvalidCredentialsError,
    NotFoundError,
    ThinkBoardError,
    ValidationError,
)
from thinkboard.middleware.logging import RequestLoggingMiddleware
from thinkboard.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from thinkboard.middleware.request_id import RequestIDMiddleware, request_id_var
from thinkboard.routes import auth, health, notes
from thinkboard.security import PasswordHasher

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure root logging once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by Docker)
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup refuses to continue without a signing secret: a missing
    JWT_SECRET raises ConfigurationError and uvicorn exits.
    """
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level)
    logger.info("Think Board Backend starting up...")

    try:
        app_settings.validate_required_for_production()
    except ConfigurationError as e:
        logger.error("%s", e.message)
        logger.error("Fix the configuration and restart the server.")
        raise

    logger.info(
        "Rate limit: %d requests / %ds (%s)",
        app_settings.rate_limit_requests,
        app_settings.rate_limit_window,
        app_settings.rate_limit_scope,
    )
    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)

    yield

    logger.info("Think Board Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the uniform error body.

        ValidationError          → 400 validation_error
        RequestValidationError   → 400 validation_error (instead of 422)
        ConflictError            → 400 conflict
        InvalidCredentialsError  → 400 invalid_credentials
        AuthenticationError      → 401 unauthorized
        NotFoundError            → 404 not_found
        DatabaseError            → 500 server_error
        ThinkBoardError (base)   → 500 server_error
        Exception (fallback)     → 500 internal_server_error

    429 responses are built by RateLimitMiddleware, which runs outside these
    handlers.

    Starlette resolves handlers along the exception's MRO, so the
    InvalidCredentialsError handler wins over the AuthenticationError one.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error(400, "validation_error", "Invalid request body", details={"errors": errors})

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error(400, "conflict", exc.message)

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return _error(400, "invalid_credentials", exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error(
            401, "unauthorized", exc.message, headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        # Context is logged server-side only
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(ThinkBoardError)
    async def handle_application_error(request: Request, exc: ThinkBoardError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True,
        )
        return _error(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Explicit configuration; defaults to the environment.

    Returns:
        A configured FastAPI instance with its own RateLimiter.
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Think Board API",
        description="Personal notes with username/password authentication.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    limiter = RateLimiter(
        max_requests=app_settings.rate_limit_requests,
        window_seconds=app_settings.rate_limit_window,
    )
    app.state.settings = app_settings
    app.state.rate_limiter = limiter
    app.state.password_hasher = PasswordHasher(rounds=app_settings.bcrypt_rounds)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: CORS → RequestID → Logging → RateLimit → GZip.
    # CORS is outermost so it answers preflights before they are counted and
    # adds its headers to 429s. RequestID and Logging wrap the limiter so a
    # rejected request still gets an id and an access-log line.
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        per_client=app_settings.rate_limit_scope == "client",
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()
