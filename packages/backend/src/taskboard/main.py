"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The Database handle is built here and hung on app.state, so
tests can swap the get_db dependency without touching globals.
Lifespan manages Redis and engine shutdown. Exception handlers turn
every failure into the same {"success": false, "error": ...} envelope.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard import __version__
from taskboard.api import api_router
from taskboard.config import Settings, settings
from taskboard.db.engine import Database
from taskboard.db.redis import close_redis, init_redis
from taskboard.errors import TaskboardError, Unauthenticated
from taskboard.middleware.rate_limit import RateLimitMiddleware
from taskboard.middleware.request_id import RequestIdMiddleware
from taskboard.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Redis is optional: without it the rate limiter is a no-op.
    """
    config: Settings = app.state.settings
    logger.info(
        "taskboard.starting",
        version=__version__,
        environment=config.environment,
        port=config.port,
        session_check=config.session_check,
    )

    try:
        await init_redis(config.redis_url)
        logger.info("taskboard.redis_connected", url=config.redis_url)
    except (RedisError, OSError) as e:
        logger.warning("taskboard.redis_unavailable", error=str(e))

    yield

    logger.info("taskboard.shutdown")
    await close_redis()
    await app.state.database.dispose()


# ─── Error envelope ─────────────────────────────────────


def _error(status_code: int, error: str, details=None, headers=None) -> JSONResponse:
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(
        status_code=status_code, content=jsonable_encoder(content), headers=headers
    )


async def taskboard_error_handler(request: Request, exc: TaskboardError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return _error(exc.status_code, exc.message, exc.details, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request", exc.errors())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("taskboard.unhandled_error", error=str(exc))
    return _error(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskboardError, taskboard_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


# ─── Factory ────────────────────────────────────────────


def create_app(
    config: Optional[Settings] = None, database: Optional[Database] = None
) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or settings
    app = FastAPI(
        title="Taskboard",
        description="Multi-user kanban task management API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.database = database or Database.from_settings(config)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=config.rate_limit_rpm,
        auth_rpm=config.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskboard.main:app)
app = create_app()
