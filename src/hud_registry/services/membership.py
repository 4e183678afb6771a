"""Clubs and member ranks that drive how subjects are classified.

A subject that belongs to a club is reported with the club's name as its
affiliation and the rank assigned to it; everyone else falls back to the
default classification.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from threading import Lock
from typing import Final, Protocol

from hud_registry.core.errors import UnknownClub
from hud_registry.services.registry import Classification, ClassificationPolicy

FOUNDER_RANK: Final[str] = "Prez"
DEFAULT_MEMBER_RANK: Final[str] = "Member"
DEFAULT_CLUB_NAME: Final[str] = "Club"
DEFAULT_CLUB_TAG: Final[str] = "MC"
CLUB_ID_LENGTH: Final[int] = 10

_CLUB_ID_ALPHABET: Final[str] = string.digits + string.ascii_uppercase + string.ascii_lowercase


def new_club_id() -> str:
    """Return a random 10-character alphanumeric club identifier."""
    return "".join(secrets.choice(_CLUB_ID_ALPHABET) for _ in range(CLUB_ID_LENGTH))


@dataclass(frozen=True)
class Club:
    """A club subjects can be ranked in."""

    club_id: str
    name: str
    tag: str
    founder_id: str
    created_at: int


@dataclass(frozen=True)
class Membership:
    """Rank a subject holds inside one club."""

    subject_id: str
    club_id: str
    rank: str


class Roster(Protocol):
    """Storage for clubs and member ranks."""

    def create_club(self, name: str, tag: str, founder_id: str, now: int) -> Club: ...

    def set_member(self, subject_id: str, club_id: str, rank: str) -> Membership: ...

    def assignments(self, subject_ids: Iterable[str]) -> dict[str, Classification]: ...


class InMemoryRoster:
    """Process-local roster guarded by a single lock."""

    def __init__(self) -> None:
        self._clubs: dict[str, Club] = {}
        self._members: dict[str, Membership] = {}
        self._lock = Lock()

    def create_club(self, name: str, tag: str, founder_id: str, now: int) -> Club:
        """Create a club; a non-empty founder becomes its ``Prez``."""
        with self._lock:
            club_id = new_club_id()
            while club_id in self._clubs:
                club_id = new_club_id()
            club = Club(
                club_id=club_id,
                name=name or DEFAULT_CLUB_NAME,
                tag=tag or DEFAULT_CLUB_TAG,
                founder_id=founder_id,
                created_at=now,
            )
            self._clubs[club_id] = club
            if founder_id:
                self._members[founder_id] = Membership(founder_id, club_id, FOUNDER_RANK)
            return club

    def set_member(self, subject_id: str, club_id: str, rank: str) -> Membership:
        """Place ``subject_id`` in a club with ``rank``, replacing any earlier membership.

        Raises:
            UnknownClub: ``club_id`` does not name an existing club.
        """
        with self._lock:
            if club_id not in self._clubs:
                raise UnknownClub()
            membership = Membership(subject_id, club_id, rank or DEFAULT_MEMBER_RANK)
            self._members[subject_id] = membership
            return membership

    def club(self, club_id: str) -> Club | None:
        with self._lock:
            return self._clubs.get(club_id)

    def membership(self, subject_id: str) -> Membership | None:
        with self._lock:
            return self._members.get(subject_id)

    def assignments(self, subject_ids: Iterable[str]) -> dict[str, Classification]:
        """Return the club classification of every listed subject that has one."""
        with self._lock:
            found: dict[str, Classification] = {}
            for subject_id in subject_ids:
                membership = self._members.get(subject_id)
                if membership is None:
                    continue
                club = self._clubs[membership.club_id]
                found[subject_id] = Classification(affiliation=club.name, rank=membership.rank)
            return found


class RosterClassification:
    """Classify subjects by their club membership, else by ``fallback``."""

    def __init__(self, roster: Roster, fallback: ClassificationPolicy) -> None:
        self._roster = roster
        self._fallback = fallback

    def classify(self, subject_id: str) -> Classification:
        assigned = self._roster.assignments([subject_id]).get(subject_id)
        return assigned if assigned is not None else self._fallback.classify(subject_id)

    def assignments(self, subject_ids: Iterable[str]) -> Mapping[str, Classification]:
        return self._roster.assignments(subject_ids)
