"""
GeoPatrol Backend — Health, Root & Schema Bootstrap Routes
============================================================

What:  Liveness text at /, a dependency-aware health check at /health, and
       /init-db which creates the tables on a fresh database.
Who:   Load balancers and uptime monitors; /init-db is run once by an
       operator when provisioning without Alembic.

Status levels (/health):
    - healthy:   Database reachable (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

from geopatrol import __version__
from geopatrol.database import check_connection, create_tables
from geopatrol.exceptions import PersistenceError
from geopatrol.schemas.report import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "API GEO PATROL RUNNING"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Probe the database with SELECT 1 and report aggregate status.

    Why lightweight: health checks run every 10-30 seconds.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        await check_connection(request.app.state.engine)
    except Exception as e:
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


@router.get("/init-db", response_class=PlainTextResponse, summary="Create tables if missing")
async def init_db(request: Request) -> str:
    try:
        await create_tables(request.app.state.engine)
    except Exception as e:
        raise PersistenceError(context={"operation": "create_tables", "error": str(e)})
    logger.info("Database schema initialized via /init-db")
    return "Database initialized successfully"
