"""Tests for the SQLAlchemy-backed registry store."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from unittest.mock import MagicMock

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from hud_registry.core.errors import UpstreamUnavailable
from hud_registry.models import HudRecord
from hud_registry.repositories.hud_repo import SqlRegistryStore
from hud_registry.services.registry import (
    SECONDS_PER_DAY,
    UNKNOWN,
    Classification,
    StaticClassification,
)

T0 = 1_700_000_000


@pytest.fixture()
def store(db_session: Session) -> SqlRegistryStore:
    return SqlRegistryStore(db_session, StaticClassification("MC Grid Wide", "Prospect"), scan_limit=5)


def test_upsert_inserts_then_updates(store: SqlRegistryStore, db_session: Session) -> None:
    created = store.upsert("abc", "Rex", T0, callback_url="http://sim/cb")
    assert created.first_seen == created.last_seen == T0
    assert created.rank == "Prospect"

    updated = store.upsert("abc", "", T0 + 90)
    assert updated.first_seen == T0
    assert updated.last_seen == T0 + 90
    assert updated.display_name == "Rex"
    assert updated.callback_url == "http://sim/cb"

    row = db_session.get(HudRecord, "abc")
    assert row is not None
    assert row.last_seen == T0 + 90


def test_touch(store: SqlRegistryStore) -> None:
    assert store.touch("ghost", T0) is None
    store.upsert("abc", "Rex", T0)
    touched = store.touch("abc", T0 + 5)
    assert touched is not None
    assert touched.last_seen == T0 + 5
    assert store.get("ghost") is None


def test_bulk_lookup_order_sentinels_and_cap(store: SqlRegistryStore) -> None:
    store.upsert("a", "Alpha", T0)
    store.upsert("b", "Bravo", T0)
    now = T0 + 2 * SECONDS_PER_DAY

    outcomes = store.bulk_lookup(["b", "x", "a", "b", "y", "z", "a"], now)

    assert [o.id for o in outcomes] == ["b", "x", "a", "b", "y"]
    assert [o.who for o in outcomes] == ["Bravo", UNKNOWN, "Alpha", "Bravo", UNKNOWN]
    assert outcomes[0].age_days == 2
    assert outcomes[1].age_days == 0
    assert store.bulk_lookup("not-a-list", now) == []


def test_list_endpoints_only_returns_subjects_with_url(store: SqlRegistryStore) -> None:
    store.upsert("b", "Bravo", T0, callback_url="http://b/cb")
    store.upsert("a", "Alpha", T0, callback_url="http://a/cb")
    store.upsert("c", "Charlie", T0)
    assert store.list_endpoints() == [("a", "http://a/cb"), ("b", "http://b/cb")]


class RivalInsertClassification:
    """Policy that lets another writer register the subject first."""

    def __init__(self, rival: SqlRegistryStore) -> None:
        self.rival = rival

    def classify(self, subject_id: str) -> Classification:
        self.rival.upsert(subject_id, "First", T0)
        return Classification(affiliation="MC Grid Wide", rank="Prospect")

    def assignments(self, subject_ids: Iterable[str]) -> Mapping[str, Classification]:
        return {}


def test_losing_a_first_registration_race_updates_the_winner(
    engine: Engine,
    db_session: Session,
) -> None:
    other_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        rival = SqlRegistryStore(other_session, StaticClassification("Rival MC", "Founder"))
        store = SqlRegistryStore(db_session, RivalInsertClassification(rival))

        record = store.upsert("x", "Second", T0 + 5)

        assert record.first_seen == T0
        assert record.last_seen == T0 + 5
        assert record.display_name == "Second"
        assert (record.affiliation, record.rank) == ("Rival MC", "Founder")
        assert store.get("x") == record
    finally:
        other_session.close()


def test_storage_failure_becomes_upstream_unavailable() -> None:
    session = MagicMock(spec=Session)
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("db down"))
    store = SqlRegistryStore(session, StaticClassification("x", "y"))

    with pytest.raises(UpstreamUnavailable):
        store.upsert("abc", "Rex", T0)
    session.rollback.assert_called()

    with pytest.raises(UpstreamUnavailable):
        store.bulk_lookup(["abc"], T0)
