"""
Health check endpoints for the TimeHatch API.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Union

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from tortoise import Tortoise

from ...core.cache import get_cache
from ...core.logging import get_logger
from ..versioning import get_version_meta

router = APIRouter(prefix="/health", tags=["health"])
logger = get_logger(__name__)


@router.get("")
async def health_check() -> Dict[str, Any]:
    """
    Liveness check.

    Lightweight enough for load balancer health checks; touches no dependencies.
    """
    return {
        "status": "healthy",
        "service": "TimeHatch API",
        "version": get_version_meta()["version"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def _check_database() -> str:
    try:
        await Tortoise.get_connection("default").execute_query("SELECT 1")
        return "ready"
    except Exception as e:
        logger.error("Database readiness check failed", error=str(e))
        return "unavailable"


@router.get("/ready", response_model=None)
async def readiness_check() -> Union[Dict[str, Any], JSONResponse]:
    """
    Readiness check.

    The database must answer ``SELECT 1``. Redis only backs the trend cache,
    so an unreachable Redis degrades the service without failing readiness.
    """
    start_time = time.time()
    checks = {
        "database": await _check_database(),
        "redis": "ready" if get_cache().health_check() else "unavailable",
    }
    body = {
        "status": "ready",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "TimeHatch API",
        "checks": checks,
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }

    if checks["database"] != "ready":
        body["status"] = "not_ready"
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body
        )
    if checks["redis"] != "ready":
        body["status"] = "degraded"
    return body
