"""Data access helpers for clubs and member ranks."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from hud_registry.core.errors import UnknownClub
from hud_registry.models.club import Club as ClubRow
from hud_registry.models.club import ClubMember
from hud_registry.repositories.base import SessionRepository
from hud_registry.services.membership import (
    DEFAULT_CLUB_NAME,
    DEFAULT_CLUB_TAG,
    DEFAULT_MEMBER_RANK,
    FOUNDER_RANK,
    Club,
    Membership,
    new_club_id,
)
from hud_registry.services.registry import Classification

__all__ = ["SqlRoster"]

logger = logging.getLogger(__name__)


def _to_club(row: ClubRow) -> Club:
    return Club(
        club_id=row.club_id,
        name=row.name,
        tag=row.tag,
        founder_id=row.founder_id,
        created_at=int(row.created_at),
    )


class SqlRoster(SessionRepository):
    """Roster backed by the ``club`` and ``club_member`` tables."""

    def _write_member(self, subject_id: str, club_id: str, rank: str) -> None:
        member = self.session.get(ClubMember, subject_id, with_for_update=True)
        if member is None:
            self.session.add(ClubMember(subject_id=subject_id, club_id=club_id, rank=rank))
        else:
            member.club_id = club_id
            member.rank = rank

    def _commit_member(self, subject_id: str, club_id: str, rank: str) -> None:
        self._write_member(subject_id, club_id, rank)
        try:
            self.session.commit()
        except IntegrityError:
            # Another writer inserted the member first; overwrite its row.
            self.session.rollback()
            logger.info("Concurrent rank assignment for %s; retrying as update", subject_id)
            self._write_member(subject_id, club_id, rank)
            self.session.commit()

    def create_club(self, name: str, tag: str, founder_id: str, now: int) -> Club:
        """Create a club; a non-empty founder becomes its ``Prez``."""

        def _create() -> Club:
            row = ClubRow(
                club_id=new_club_id(),
                name=name or DEFAULT_CLUB_NAME,
                tag=tag or DEFAULT_CLUB_TAG,
                founder_id=founder_id,
                created_at=now,
            )
            self.session.add(row)
            self.session.commit()
            club = _to_club(row)
            if founder_id:
                self._commit_member(founder_id, club.club_id, FOUNDER_RANK)
            return club

        return self._run("Club creation", _create)

    def set_member(self, subject_id: str, club_id: str, rank: str) -> Membership:
        """Place ``subject_id`` in a club with ``rank``, replacing any earlier membership.

        Raises:
            UnknownClub: ``club_id`` does not name an existing club.
        """

        def _set() -> Membership:
            if self.session.get(ClubRow, club_id) is None:
                self.session.rollback()
                raise UnknownClub()
            membership = Membership(subject_id, club_id, rank or DEFAULT_MEMBER_RANK)
            self._commit_member(membership.subject_id, membership.club_id, membership.rank)
            return membership

        return self._run("Rank assignment", _set)

    def assignments(self, subject_ids: Iterable[str]) -> dict[str, Classification]:
        """Return the club classification of every listed subject that has one."""
        keys = set(subject_ids)
        if not keys:
            return {}

        def _lookup() -> dict[str, Classification]:
            rows = self.session.execute(
                select(ClubMember.subject_id, ClubMember.rank, ClubRow.name)
                .join(ClubRow, ClubRow.club_id == ClubMember.club_id)
                .where(ClubMember.subject_id.in_(keys))
            )
            return {
                subject_id: Classification(affiliation=club_name, rank=rank)
                for subject_id, rank, club_name in rows
            }

        return self._run("Roster lookup", _lookup)
