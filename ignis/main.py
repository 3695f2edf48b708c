"""
=============================================================================
IGNIS API
=============================================================================

Read-only API behind the wildfire map dashboard for Brazil.

    GET /risco, /foco_calor, /area_queimada   occurrence listings
    GET /health, /health/{live,ready,db}       probes

Run locally:
    uvicorn ignis.main:app --reload
=============================================================================
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import make_url

from ignis.api.routes import health
from ignis.api.v1 import occurrences
from ignis.core.config import settings
from ignis.core.errors import register_exception_handlers
from ignis.core.logging import setup_logging
from ignis.core.middleware import LatencyMonitorMiddleware, RequestIdMiddleware

logger = setup_logging()

OCCURRENCE_PATHS = ["/risco", "/foco_calor", "/area_queimada"]

tags_metadata = [
    {
        "name": "ocorrencias",
        "description": "**Occurrences** - Fire-risk probability, heat-focus detections and burned area, filtered by state code, biome code and date range. / *Risco de fogo, focos de calor e area queimada por estado, bioma e periodo.*",
    },
    {
        "name": "health",
        "description": "**Health** - Liveness, readiness and spatial store checks.",
    },
]


def _store_label() -> str:
    if not settings.DATABASE_URL:
        return "unconfigured"
    return make_url(settings.DATABASE_URL).render_as_string(hide_password=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "startup",
        project=settings.PROJECT_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        store=_store_label(),
        origins=settings.ALLOWED_ORIGINS,
    )
    yield
    logger.info("shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Fire risk, heat foci and burned area for the Ignis map dashboard.",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Starlette runs the last added middleware first: request id, latency, CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
    expose_headers=["X-Request-ID", "X-Process-Time"],
)
app.add_middleware(LatencyMonitorMiddleware)
app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)

app.include_router(occurrences.router, tags=["ocorrencias"])
app.include_router(health.router, prefix="/health", tags=["health"])


@app.get("/health", summary="Service metadata for uptime checks")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/", summary="API root")
async def root():
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": OCCURRENCE_PATHS,
    }
