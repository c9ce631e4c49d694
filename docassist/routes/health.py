"""
Document AI Assistant — Health Check Route
===========================================

What:  Liveness/readiness probe for load balancers and monitoring.
How:   SELECT 1 against the database plus a lightweight check of each LLM
       provider.

Status levels:
    healthy    → database reachable, every provider available
    degraded   → database reachable, at least one provider unavailable
    unhealthy  → database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from docassist import __version__
from docassist.database import engine
from docassist.schemas.common import HealthResponse
from docassist.services.llm_providers import PROVIDERS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports database connectivity and the availability of each AI provider.",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    providers = {}
    for name, service in PROVIDERS.items():
        available = await service.health_check()
        providers[name] = "available" if available else "unavailable"
        if not available and overall == "healthy":
            overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        providers=providers,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
