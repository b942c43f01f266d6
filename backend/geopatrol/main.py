"""
GeoPatrol Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() builds the shared handles, registers
       middleware, exception handlers, routes and the uploads mount, and
       returns a configured FastAPI instance.
Who:   uvicorn (`geopatrol.main:app`), `python -m geopatrol`, and tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────┐ ┌──────┐ ┌─────────┐  │
    │  │  Req ID  │→│  Logging    │→│ GZip │→│  CORS   │  │
    │  └──────────┘ └─────────────┘ └──────┘ └─────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  POST /api/register   POST /api/login               │
    │  POST /api/laporan    GET  /api/laporan  (bearer)   │
    │  GET /  GET /health  GET /init-db  /uploads/*       │
    │                                                     │
    │  app.state: settings, engine, session_factory,      │
    │             blob_store, token_service,              │
    │             password_hasher                         │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Verify the datastore answers SELECT 1 (exit if not)
    3. Optionally create tables (DB_CREATE_ALL)

    Shutdown:
    1. Dispose database engine (close all pooled connections)
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
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncEngine

from geopatrol import __version__
from geopatrol.config import Settings
from geopatrol.config import settings as default_settings
from geopatrol.database import (
    build_engine,
    build_session_factory,
    check_connection,
    create_tables,
    dispose_engine,
)
from geopatrol.exceptions import GeoPatrolError, InvalidInputError, PersistenceError
from geopatrol.middleware.logging import RequestLoggingMiddleware
from geopatrol.middleware.request_id import RequestIDMiddleware, request_id_var
from geopatrol.routes import auth, health, reports
from geopatrol.services.auth_service import PasswordHasher
from geopatrol.services.file_service import LocalBlobStore
from geopatrol.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, datastore reachability, optional table creation.
    Shutdown: dispose the engine.

    An unreachable datastore at startup is fatal: the process exits
    instead of serving requests that can only fail.
    """
    settings: Settings = app.state.settings
    engine: AsyncEngine = app.state.engine

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("GeoPatrol Backend %s starting up...", __version__)

    try:
        await check_connection(engine)
        if settings.db_create_all:
            await create_tables(engine)
            logger.info("Database tables ensured")
    except Exception as e:
        logger.critical("Database connection failed: %s", str(e))
        raise SystemExit(1)

    logger.info("Database connected")
    logger.info("Upload directory: %s", app.state.blob_store.upload_dir)
    logger.info("Server ready at http://%s:%d", settings.host, settings.port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("GeoPatrol Backend shutting down...")
    await dispose_engine(engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the ContextVar's context;
    # request.state lives on the shared ASGI scope and is visible there
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def _error_body(request: Request, message: str, code: str) -> dict:
    return {"error": message, "code": code, "request_id": _request_id(request)}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses.

    Handler hierarchy:
        PersistenceError        → 500, generic message, context logged
        GeoPatrolError (others) → the exception's own status (400/401/403)
        RequestValidationError  → 400 (malformed body or form)
        Exception (fallback)    → 500

    Security: responses NEVER include driver errors, SQL, or file paths.
    """

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        rid = _request_id(request)
        logger.error("[%s] Persistence error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message, exc.code))

    @app.exception_handler(GeoPatrolError)
    async def handle_app_error(request: Request, exc: GeoPatrolError):
        rid = _request_id(request)
        logger.warning("[%s] %s: %s", rid, exc.code, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.code),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = _request_id(request)
        logger.warning("[%s] Request validation failed: %s", rid, exc.errors())
        error = InvalidInputError()
        return JSONResponse(status_code=400, content=_error_body(request, error.message, error.code))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the log, never to the client."""
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=_error_body(request, "Server error", "internal_server_error"))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to values read from the environment.
        engine:   Pre-built async engine (tests pass an in-memory SQLite one);
                  built from settings when omitted.

    Every shared handle is created here and owned by the returned app.
    """
    settings = settings or default_settings
    engine = engine or build_engine(settings)

    app = FastAPI(
        title="GeoPatrol API",
        description="Courier delivery confirmation: authentication, photo-backed reports, history.",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Shared Handles ────────────────────────────────────────────────────
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.blob_store = LocalBlobStore(settings.upload_dir, settings.uploads_url_prefix)
    app.state.token_service = TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(reports.router)
    app.include_router(health.router)

    # Uploaded photos, served read-only
    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=str(app.state.blob_store.upload_dir)),
        name="uploads",
    )

    return app


# uvicorn expects `geopatrol.main:app` to be importable
app = create_app()
