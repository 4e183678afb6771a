# tests/conftest.py
from __future__ import annotations

import json
import os
import time
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest

from tests.helpers import TEST_SECRET, FakeClock, sign

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SHARED_SECRET"] = TEST_SECRET
os.environ["REGISTRY_BACKEND"] = "memory"

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hud_registry.api.dependencies import get_backend_session, get_gate, get_registry, get_roster
from hud_registry.core.settings import Settings
from hud_registry.db.session import Base
from hud_registry.main import app as fastapi_app
from hud_registry.services.gate import RequestGate, build_gate
from hud_registry.services.membership import InMemoryRoster, RosterClassification
from hud_registry.services.registry import InMemoryRegistry, StaticClassification

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
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    """Serve backend sessions from the test database."""

    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_backend_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_backend_session, None)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings aligned with the defaults the service runs with."""
    return Settings(SHARED_SECRET=TEST_SECRET)


@pytest.fixture()
def gate(app: FastAPI, test_settings: Settings) -> Iterator[RequestGate]:
    """Fresh gate per test so rate buckets never leak between tests."""
    fresh = build_gate(test_settings)
    app.dependency_overrides[get_gate] = lambda: fresh
    try:
        yield fresh
    finally:
        app.dependency_overrides.pop(get_gate, None)


@pytest.fixture()
def roster(app: FastAPI) -> Iterator[InMemoryRoster]:
    """Fresh in-memory roster wired into the API."""
    fresh = InMemoryRoster()
    app.dependency_overrides[get_roster] = lambda: fresh
    try:
        yield fresh
    finally:
        app.dependency_overrides.pop(get_roster, None)


@pytest.fixture()
def registry(
    app: FastAPI,
    test_settings: Settings,
    roster: InMemoryRoster,
) -> Iterator[InMemoryRegistry]:
    """Fresh in-memory registry wired into the API, classified by ``roster``."""
    default = StaticClassification(test_settings.default_affiliation, test_settings.default_rank)
    fresh = InMemoryRegistry(
        RosterClassification(roster, default),
        scan_limit=test_settings.scan_max_targets,
    )
    app.dependency_overrides[get_registry] = lambda: fresh
    try:
        yield fresh
    finally:
        app.dependency_overrides.pop(get_registry, None)


@pytest.fixture()
def client(app: FastAPI, gate: RequestGate, registry: InMemoryRegistry) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_body() -> Callable[..., str]:
    """Build a compact JSON body stamped with the current time."""

    def _make(**fields: Any) -> str:
        fields.setdefault("timestamp", int(time.time()))
        return json.dumps(fields, separators=(",", ":"))

    return _make


@pytest.fixture()
def post_signed(client: TestClient) -> Callable[..., Any]:
    """POST a body exactly as given, signed in the X-Sig header."""

    def _post(path: str, body: str, sig: str | None = None, **kwargs: Any) -> Any:
        headers = {"Content-Type": "application/json", "X-Sig": sig if sig is not None else sign(body)}
        headers.update(kwargs.pop("headers", {}))
        return client.post(path, content=body.encode("utf-8"), headers=headers, **kwargs)

    return _post
