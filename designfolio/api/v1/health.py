"""Health check endpoints: liveness and database connectivity."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from designfolio import __version__
from designfolio.api.deps import DbSession
from designfolio.core.config import settings
from designfolio.core.database import check_db_connected
from designfolio.schemas.health import DependencyHealth, HealthResponse

router = APIRouter()

_STARTED_AT = time.monotonic()


def _base_health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        uptime=round(time.monotonic() - _STARTED_AT, 3),
        environment=settings.APP_ENV,
        version=__version__,
    )


@router.get("", response_model=HealthResponse)
def get_health() -> HealthResponse:
    """Liveness only; does not touch the database. Used by load balancers."""
    return _base_health()


@router.get("/connection", response_model=HealthResponse)
def get_connection_health(db: DbSession) -> JSONResponse:
    """Liveness plus a database round trip; 503 when the database is unreachable."""
    started = time.perf_counter()
    if check_db_connected(db):
        database = DependencyHealth(status="healthy", message="Database connection succeeded!")
    else:
        database = DependencyHealth(
            status="unhealthy",
            message="Database connection failed!",
            error="Connection failed!",
        )
    health = _base_health().model_copy(
        update={
            "status": database.status,
            "responseTime": f"{round((time.perf_counter() - started) * 1000)}ms",
            "dependencies": {"database": database},
        }
    )
    status_code = 200 if database.status == "healthy" else 503
    return JSONResponse(status_code=status_code, content=health.model_dump(mode="json"))
