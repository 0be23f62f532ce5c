"""
Eclairum Backend — Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks critical dependencies (database, Gemini) and returns status.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   All dependencies operational
    - degraded:  Quiz generation unavailable; CRUD still works
    - unhealthy: Database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse
from app.services.gemini_service import CircuitBreaker, quiz_generator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    """
    Check details:
        Database: SELECT 1 on a pooled connection
        Gemini:   circuit breaker state first, then list_models()
    """
    db_status = "connected"
    llm_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Quiz Generator ──────────────────────────────────────────────
    if quiz_generator.circuit_breaker.state == CircuitBreaker.OPEN:
        llm_status = "circuit_open"
    elif not await quiz_generator.health_check():
        llm_status = "unavailable"

    if llm_status != "available" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        llm=llm_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
