"""
Health endpoints, mounted under /health.

- /live  - process is up
- /ready - store reachable and every occurrence table present
- /db    - store latency and table check; 503 unless healthy

A store that answers but lacks an occurrence or lookup table is "degraded":
the matching listing would answer 500 on every call.
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ignis.api import deps
from ignis.services.query_builder import LOOKUP_TABLES, SOURCES

router = APIRouter(tags=["health"])

REQUIRED_TABLES = tuple(source.table for source in SOURCES.values()) + LOOKUP_TABLES


class ServiceHealth(BaseModel):
    status: Literal["healthy", "degraded", "unhealthy"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    missing_tables: List[str] = []


def missing_tables(db: Session) -> List[str]:
    return [
        table
        for table in REQUIRED_TABLES
        if db.execute(text("SELECT to_regclass(:name)"), {"name": table}).scalar() is None
    ]


def check_database(db: Session) -> ServiceHealth:
    """Round-trip latency plus the occurrence table check."""
    try:
        started = time.perf_counter()
        db.execute(text("SELECT 1"))
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        missing = missing_tables(db)
    except SQLAlchemyError as exc:
        return ServiceHealth(
            status="unhealthy", message=str(getattr(exc, "orig", None) or exc)[:100]
        )

    if missing:
        return ServiceHealth(
            status="degraded",
            latency_ms=latency_ms,
            message="occurrence tables missing",
            missing_tables=missing,
        )
    return ServiceHealth(status="healthy", latency_ms=latency_ms)


@router.get("/live", summary="Liveness probe")
def liveness_probe() -> Dict[str, Any]:
    return {"alive": True, "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/ready", summary="Readiness probe")
def readiness_probe(db: Session = Depends(deps.get_db)) -> Dict[str, Any]:
    return {"ready": check_database(db).status == "healthy"}


@router.get(
    "/db",
    summary="Spatial store check",
    response_model=ServiceHealth,
    responses={503: {"model": ServiceHealth}},
)
def db_health_check(db: Session = Depends(deps.get_db)):
    result = check_database(db)
    return JSONResponse(
        content=result.model_dump(),
        status_code=200 if result.status == "healthy" else 503,
    )
