"""Tests for the SQLAlchemy-backed roster."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from hud_registry.core.errors import UnknownClub, UpstreamUnavailable
from hud_registry.models import Club, ClubMember
from hud_registry.repositories.club_repo import SqlRoster
from hud_registry.repositories.hud_repo import SqlRegistryStore
from hud_registry.services.membership import FOUNDER_RANK, RosterClassification
from hud_registry.services.registry import Classification, StaticClassification

T0 = 1_700_000_000


@pytest.fixture()
def roster(db_session: Session) -> SqlRoster:
    return SqlRoster(db_session)


def test_create_club_persists_club_and_founder(roster: SqlRoster, db_session: Session) -> None:
    club = roster.create_club("", "", "boss", T0)

    row = db_session.get(Club, club.club_id)
    assert row is not None
    assert (row.name, row.tag, row.created_at) == ("Club", "MC", T0)
    member = db_session.get(ClubMember, "boss")
    assert member is not None
    assert (member.club_id, member.rank) == (club.club_id, FOUNDER_RANK)


def test_set_member_inserts_then_updates(roster: SqlRoster) -> None:
    wolves = roster.create_club("Iron Wolves", "IW", "", T0)
    owls = roster.create_club("Night Owls", "NO", "", T0)

    assert roster.set_member("abc", wolves.club_id, "").rank == "Member"
    roster.set_member("abc", owls.club_id, "Sergeant")

    assert roster.assignments(["abc", "ghost"]) == {"abc": Classification("Night Owls", "Sergeant")}
    assert roster.assignments([]) == {}


def test_set_member_rejects_unknown_club(roster: SqlRoster, db_session: Session) -> None:
    with pytest.raises(UnknownClub):
        roster.set_member("abc", "missing", "Member")
    assert db_session.get(ClubMember, "abc") is None


def test_registry_uses_stored_ranks(roster: SqlRoster, db_session: Session) -> None:
    policy = RosterClassification(roster, StaticClassification("MC Grid Wide", "Prospect"))
    store = SqlRegistryStore(db_session, policy)
    club = roster.create_club("Iron Wolves", "IW", "boss", T0)

    created = store.upsert("boss", "Boss", T0)
    assert (created.affiliation, created.rank) == ("Iron Wolves", FOUNDER_RANK)
    store.upsert("abc", "Rex", T0)

    roster.set_member("abc", club.club_id, "Road Captain")
    outcomes = store.bulk_lookup(["abc", "boss"], T0)
    assert [(o.mc, o.rank) for o in outcomes] == [
        ("Iron Wolves", "Road Captain"),
        ("Iron Wolves", FOUNDER_RANK),
    ]


def test_storage_failure_becomes_upstream_unavailable() -> None:
    session = MagicMock(spec=Session)
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("db down"))
    roster = SqlRoster(session)

    with pytest.raises(UpstreamUnavailable):
        roster.assignments(["abc"])
    session.rollback.assert_called()
