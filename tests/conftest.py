# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_SALT", "test-salt")

from pinwatch.api.v1.dependencies import get_blob_store, get_content_moderator, get_geocoder
from pinwatch.core.security import create_verifier_token
from pinwatch.db.session import Base
from pinwatch.db.session import get_db as app_get_session
from pinwatch.main import app as fastapi_app
from tests.support import (
    FIXED_NOW,
    MAIN_ST,
    OAK_AVE,
    FakeGeocoder,
    FakeModerator,
    InMemoryBlobStore,
    MutableClock,
)

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database; services commit freely.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> MutableClock:
    return MutableClock(FIXED_NOW)


@pytest.fixture()
def moderator() -> FakeModerator:
    return FakeModerator()


@pytest.fixture()
def geocoder() -> FakeGeocoder:
    return FakeGeocoder(
        {
            "123 main st": MAIN_ST,
            "123 main st springfield": MAIN_ST,
            "9 oak ave": OAK_AVE,
        }
    )


@pytest.fixture()
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    moderator: FakeModerator,
    geocoder: FakeGeocoder,
    blob_store: InMemoryBlobStore,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_content_moderator] = lambda: moderator
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def verifier_headers() -> dict[str, str]:
    """Return authorization headers for a verifier account."""
    return {"Authorization": f"Bearer {create_verifier_token('verifier-1')}"}


@pytest.fixture()
def member_headers() -> dict[str, str]:
    """Return authorization headers for a signed-in non-verifier."""
    return {"Authorization": f"Bearer {create_verifier_token('member-1', role='member')}"}
