from typing import Generator

import fastapi.testclient as fastapi_testclient
import pytest
from sqlalchemy.orm import sessionmaker

from ignis.api import deps as api_deps
from ignis.core.config import settings
from ignis.db.session import build_engine
from ignis.main import app

# -----------------------------------------------------------------------------
# Spatial store (integration tests only)
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def db_engine():
    """PostGIS engine for TEST_DATABASE_URL; integration tests skip without it."""
    if not settings.TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL is not set")
    engine = build_engine(settings.TEST_DATABASE_URL, pool_size=1, max_overflow=0)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """
    Session on a connection whose outer transaction is rolled back at
    teardown, so tables and rows a test creates never outlive it.
    """
    connection = db_engine.connect()
    outer = connection.begin()
    session = sessionmaker(bind=connection)()

    yield session

    session.close()
    outer.rollback()
    connection.close()


# -----------------------------------------------------------------------------
# API clients
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clear_overrides():
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client() -> Generator:
    """TestClient with no store behind it; tests override what they hit."""
    with fastapi_testclient.TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def db_client(db_session) -> Generator:
    """TestClient whose requests all share the rolled-back db_session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[api_deps.get_db] = override_get_db

    with fastapi_testclient.TestClient(app) as c:
        yield c
