# Pytest configuration for the RentalHub API tests.
# Forces a local SQLite DB, disables Redis, and wires JWT secrets for deterministic runs.
import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Test-time environment: local SQLite DB, Redis disabled, predictable JWT secret
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("RENTALHUB_JWT_SECRET", "test-secret")

import sys
# Ensure the repo root is on sys.path so 'rentalhub' resolves when running pytest from anywhere
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from rentalhub.main import app  # noqa: E402
from rentalhub.db import Base, SessionLocal, engine  # noqa: E402
from rentalhub.redis_client import reset_redis  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _bootstrap_db() -> Iterator[None]:
    """
    Session-level database bootstrap using a local SQLite file.

    Drops and recreates schema once per test session to ensure a clean slate.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_db() -> Iterator[None]:
    """
    Function-level isolation: drop and recreate schema before each test.

    Also forgets any Redis client a test installed.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    reset_redis()
    yield
    reset_redis()


@pytest.fixture()
def client() -> Iterator[TestClient]:
    """
    FastAPI TestClient bound to the application for HTTP-level tests.
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db() -> Iterator:
    """Direct ORM session for core-level tests and for seeding rows the API cannot create (admins)."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
