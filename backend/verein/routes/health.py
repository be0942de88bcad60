"""
Verein Backend - Health Check Route
====================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   A load balancer needs to know whether this instance can serve
       requests, so it can route away from one that cannot.
How:   Runs SELECT 1 against the database and reports the aggregate status.
Who:   Called by container health checks, load balancers and monitoring.
When:  Periodically (e.g. every 30 seconds by Docker).

Health Check Philosophy:
    Every operation of this service reads or writes the database, so the
    database is the only critical dependency. There is no "degraded" level:
    without the database nothing works.

    The check goes through the engine directly instead of a request session,
    so it works even when the session dependency is overridden and does not
    open a transaction.

    Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from verein import __version__
from verein.database import engine
from verein.schemas.verein import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
# Module-level: set once when the module is imported
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
