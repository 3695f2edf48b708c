"""Engine and session factory for the spatial store (PostgreSQL + PostGIS)."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ignis.core.config import settings


def build_engine(url: str, **overrides) -> Engine:
    """Pooled engine whose connections show up as DB_APPLICATION_NAME in pg_stat_activity."""
    options = {
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "echo": settings.DEBUG,
        "connect_args": {"application_name": settings.DB_APPLICATION_NAME},
    }
    options.update(overrides)
    return create_engine(url, **options)


engine = build_engine(settings.DATABASE_URL)

# Occurrence reads never flush
SessionLocal = sessionmaker(bind=engine, autoflush=False)
