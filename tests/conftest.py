"""
Pytest configuration and fixtures for InspectSync tests.

Every test gets its own in-memory SQLite database so store-backed tests never
see each other's inspections. The API client routes ``get_db`` to the same
session the test inspects.
"""

import os

# Never bootstrap the configured database from tests.
os.environ.setdefault("SKIP_DB_INIT", "1")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inspectsync.db import models  # noqa: F401  (registers tables on Base)
from inspectsync.db.session import Base, get_db
from inspectsync.db.store import InspectionStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return InspectionStore(db_session)


@pytest.fixture
def client(db_session):
    from inspectsync.main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)
