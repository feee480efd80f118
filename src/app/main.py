"""
Boost & Success API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging, database and Redis connections
- Enrollment configuration and admin credential defaults
- The admin session guard and the background job scheduler
- CORS middleware, API routing and error handlers
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import admin_router, api_router
from app.core.config import settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.redis import close_redis, init_redis, redis_status
from app.core.scheduler import start_scheduler, stop_scheduler
from app.modules.auth.jobs import register_auth_jobs
from app.modules.auth.service import AdminSessionGuard, ensure_admin_credential
from app.modules.capacity.service import initialize_config

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def _initialize_defaults() -> None:
    """Create the configuration row and the admin credential when absent."""
    async with async_session_maker() as db:
        await initialize_config(db)
        await ensure_admin_credential(db, settings.admin_password)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection (optional outside production, rate limits fall back to memory)
    - Database connection and default rows
    - Admin session guard
    - Background job scheduler
    """
    logger.info(f"Starting {settings.program_name} API in {settings.python_env} mode...")

    try:
        await init_redis()
        logger.info("Redis connected")
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        await _initialize_defaults()
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        if settings.is_production:
            raise

    app.state.session_guard = AdminSessionGuard(
        ttl=timedelta(hours=settings.admin_session_ttl_hours)
    )

    try:
        register_auth_jobs()
        await start_scheduler()
        logger.info("Background scheduler started")
    except Exception as e:
        logger.error(f"Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    logger.info(f"Shutting down {settings.program_name} API...")

    await stop_scheduler()
    await close_redis()
    await close_db()
    logger.info("Cleanup complete")


app = FastAPI(
    title="Boost & Success API",
    description="Enrollment funnel for the Boost & Success paid membership",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api")
app.include_router(admin_router, prefix="/admin")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies, params and forms answer 400 with per-field messages."""
    fields: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields[".".join(loc) or "body"] = error.get("msg", "Invalid value")

    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "error": "VALIDATION_ERROR",
                "message": "Invalid request data.",
                "fields": fields,
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
            }
        },
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness check."""
    return {"status": "healthy", "redis": await redis_status()}
