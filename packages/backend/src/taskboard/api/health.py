"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
reports whether Postgres and Redis are reachable. Redis is optional,
so a missing connection is reported as "disabled", not an error.
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from taskboard import __version__
from taskboard.db.redis import get_redis
from taskboard.schemas.common import ok

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check Postgres
    try:
        async with request.app.state.database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception as e:
        checks["postgres"] = f"error: {e}"

    # Check Redis
    redis = get_redis()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {e}"

    healthy = checks["postgres"] == "ok" and checks["redis"] in ("ok", "disabled")
    return ok({"status": "healthy" if healthy else "degraded", **checks})
