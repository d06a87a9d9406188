"""
Records Service: Health Check Routes
======================================

What:  Liveness and readiness probes.
How:   /ping answers without touching anything; /health runs the connection
       provider's connect-and-ping check against MongoDB.
Who:   Docker health checks, load balancers, monitoring.

Status levels:
    healthy:   MongoDB reachable and answering ping
    degraded:  MongoDB unreachable (the process itself is still serving)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from records_service import __version__
from records_service.database import ConnectionProvider, get_connection_provider
from records_service.schemas.record import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports whether the document store can be reached, plus version and uptime.",
)
async def health_check(
    provider: ConnectionProvider = Depends(get_connection_provider),
) -> HealthResponse:
    if await provider.check():
        db_status, overall = "connected", "healthy"
    else:
        db_status, overall = "disconnected", "degraded"
        logger.warning("Health check: document store unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get("/ping", response_class=PlainTextResponse, summary="Liveness probe")
async def ping() -> str:
    return "pong"
