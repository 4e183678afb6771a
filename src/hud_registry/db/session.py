"""Engine and session factory for the persisted registry backend."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hud_registry.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the registry and roster tables."""


# Models register their tables on Base.metadata at import time.
import hud_registry.models  # noqa: E402,F401


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections are opened on the event loop and closed from the
    dependency threadpool, so they must not be pinned to one thread. An
    in-memory SQLite URL shares a single connection so every session sees the
    same tables.
    """
    options: dict[str, Any] = {"echo": echo}
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return create_engine(url, **options)


engine = build_engine(settings.database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a session that is closed once the request is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create the registry and roster tables if they are missing."""
    Base.metadata.create_all(bind=engine)
