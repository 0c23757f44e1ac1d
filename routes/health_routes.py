"""
Health check endpoint.

GET /health — checks MongoDB and Redis connectivity.
Rules:
- MongoDB failure → "unhealthy" (503); links cannot be resolved without it.
- Redis failure or absence → "degraded" (200); it only backs the redirect cache.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

router = APIRouter(tags=["health"])

log = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        db = request.app.state.db
        await db.client.admin.command("ping")
        checks["mongodb"] = "ok"
    except Exception as e:
        log.warning("health_check_failed", dependency="mongodb", error=str(e))
        checks["mongodb"] = "error"
        overall = "unhealthy"

    redis = request.app.state.redis
    if redis is None:
        checks["redis"] = "not_configured"
        if overall == "healthy":
            overall = "degraded"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as e:
            log.warning("health_check_failed", dependency="redis", error=str(e))
            checks["redis"] = "error"
            if overall == "healthy":
                overall = "degraded"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content=HealthResponse(status=overall, checks=checks).model_dump(),
    )
