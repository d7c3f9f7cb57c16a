"""
Shared pytest fixtures.

Uses a SQLite file database so no external server is required for tests.
The API clock is frozen so past / today / future routing is deterministic.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from energycast.core.clock import FixedClock
from energycast.db.base import Base, get_db
from energycast.main import app
from energycast.routers.energy import get_clock

SQLITE_URL = "sqlite:///./test_energycast.db"

# "Now" for every API test: 14:00 UTC on a day far from any real date.
API_NOW = datetime(2031, 6, 15, 14, 0, tzinfo=timezone.utc)

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def override_get_clock():
    return FixedClock(API_NOW)


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = override_get_clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
