"""Health and readiness endpoints.

  /health (liveness):  the process can answer; dependency status is
                       reported in the body but never fails the probe.
  /ready  (readiness): 503 when a configured database is unreachable.
                       Redis only backs the read cache, so it never
                       affects readiness.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from marketplace.db import engine as db_engine
from marketplace.db import redis as db_redis

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Liveness probe + dependency status.

    Returns 200 even when degraded; the status field carries the actual
    health.  A 503 here would make the orchestrator restart the container,
    which is too aggressive for a partial outage.
    """
    checks: dict[str, str] = {}
    overall = "ok"

    if db_engine.engine is not None:
        if await db_engine.ping_database():
            checks["database"] = "ok"
        else:
            checks["database"] = "degraded"
            overall = "degraded"
    else:
        checks["database"] = "not_configured"

    if db_redis.redis_pool is not None:
        if await db_redis.ping_redis():
            checks["redis"] = "ok"
        else:
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    """Readiness probe: can this instance handle traffic?"""
    if db_engine.engine is not None and not await db_engine.ping_database():
        return Response(status_code=503)
    return Response(status_code=200)
