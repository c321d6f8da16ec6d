"""Health check endpoints."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.database import check_database
from app.core.redis import check_redis

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "ok", "app": settings.app_name, "env": settings.app_env}


@router.get("/ready")
async def readiness_check():
    """Readiness check - verifies database and Redis are reachable."""
    checks: dict[str, str] = {}

    try:
        checks["database"] = "ok" if await check_database() else "error"
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database readiness check failed: {e}")
        checks["database"] = "error"

    try:
        checks["redis"] = "ok" if await check_redis() else "error"
    except (RedisError, OSError) as e:
        logger.error(f"Redis readiness check failed: {e}")
        checks["redis"] = "error"

    if all(value == "ok" for value in checks.values()):
        return {"status": "ready", "checks": checks}
    return JSONResponse(status_code=503, content={"status": "not_ready", "checks": checks})
