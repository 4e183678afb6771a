"""Tests for engine construction."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool

from hud_registry.db.session import Base, build_engine


def test_in_memory_sqlite_shares_one_connection() -> None:
    engine = build_engine("sqlite://")
    try:
        assert isinstance(engine.pool, StaticPool)
        Base.metadata.create_all(bind=engine)
        assert {"hud_record", "club", "club_member"} <= set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_file_sqlite_uses_a_regular_pool(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'hud.db'}")
    try:
        assert not isinstance(engine.pool, StaticPool)
        assert engine.dialect.name == "sqlite"
    finally:
        engine.dispose()
