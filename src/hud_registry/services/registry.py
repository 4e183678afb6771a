"""Subject registry: upsert on registration, ordered bulk lookup on scan."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from threading import Lock
from collections.abc import Iterable, Mapping
from typing import Any, Final, Protocol

SECONDS_PER_DAY: Final[int] = 86_400
UNKNOWN: Final[str] = "(unknown)"
DEFAULT_SCAN_LIMIT: Final[int] = 50


@dataclass
class SubjectRecord:
    """Stored identity and affiliation state for one subject."""

    subject_id: str
    display_name: str
    affiliation: str
    rank: str
    first_seen: int
    last_seen: int
    callback_url: str = ""


@dataclass(frozen=True)
class LookupOutcome:
    """Per-id result of a bulk lookup; ``id`` echoes the caller's value."""

    id: Any
    who: str
    mc: str
    rank: str
    age_days: int


@dataclass(frozen=True)
class Classification:
    """Affiliation label and rank reported for a subject."""

    affiliation: str
    rank: str


class ClassificationPolicy(Protocol):
    """Strategy deciding how subjects are classified.

    ``classify`` labels a subject on first sight; ``assignments`` returns the
    explicit labels that override stored ones on later registrations and
    lookups.
    """

    def classify(self, subject_id: str) -> Classification: ...

    def assignments(self, subject_ids: Iterable[str]) -> Mapping[str, Classification]: ...


class StaticClassification:
    """Classify every subject with the same affiliation and rank."""

    def __init__(self, affiliation: str, rank: str) -> None:
        self._classification = Classification(affiliation=affiliation, rank=rank)

    def classify(self, subject_id: str) -> Classification:
        return self._classification

    def assignments(self, subject_ids: Iterable[str]) -> Mapping[str, Classification]:
        return {}


class RegistryStore(Protocol):
    """Operations the request handlers need from a registry backend."""

    def upsert(
        self,
        subject_id: str,
        display_name: str,
        now: int,
        *,
        callback_url: str | None = None,
    ) -> SubjectRecord: ...

    def touch(self, subject_id: str, now: int) -> SubjectRecord | None: ...

    def bulk_lookup(self, subject_ids: Any, now: int) -> list[LookupOutcome]: ...

    def list_endpoints(self) -> list[tuple[str, str]]: ...


def age_in_days(first_seen: int | None, now: int) -> int:
    """Return whole days elapsed since ``first_seen``, never negative."""
    if first_seen is None:
        return 0
    return max(0, (int(now) - int(first_seen)) // SECONDS_PER_DAY)


def normalize_targets(subject_ids: Any, limit: int) -> list[Any]:
    """Return at most ``limit`` ids; anything but a list becomes empty."""
    if not isinstance(subject_ids, (list, tuple)):
        return []
    return list(subject_ids[:limit])


def unknown_outcome(subject_id: Any) -> LookupOutcome:
    """Return the sentinel outcome for an id that was never registered."""
    return LookupOutcome(id=subject_id, who=UNKNOWN, mc=UNKNOWN, rank=UNKNOWN, age_days=0)


def outcome_for(
    subject_id: Any,
    record: SubjectRecord | None,
    now: int,
    assigned: Classification | None = None,
) -> LookupOutcome:
    """Shape a lookup outcome from a stored record and its current assignment."""
    if record is None:
        return unknown_outcome(subject_id)
    if assigned is None:
        assigned = Classification(affiliation=record.affiliation, rank=record.rank)
    return LookupOutcome(
        id=subject_id,
        who=record.display_name,
        mc=assigned.affiliation,
        rank=assigned.rank,
        age_days=age_in_days(record.first_seen, now),
    )


def refresh_record(
    record: Any,
    display_name: str,
    now: int,
    callback_url: str | None = None,
    assigned: Classification | None = None,
) -> None:
    """Apply a repeat registration to a stored record or row in place."""
    if display_name:
        record.display_name = display_name
    if callback_url:
        record.callback_url = callback_url
    if assigned is not None:
        record.affiliation = assigned.affiliation
        record.rank = assigned.rank
    record.last_seen = now


class InMemoryRegistry:
    """Process-local registry guarded by a single lock."""

    def __init__(
        self,
        classification: ClassificationPolicy,
        *,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ) -> None:
        self._classification = classification
        self._scan_limit = scan_limit
        self._records: dict[str, SubjectRecord] = {}
        self._lock = Lock()

    def upsert(
        self,
        subject_id: str,
        display_name: str,
        now: int,
        *,
        callback_url: str | None = None,
    ) -> SubjectRecord:
        """Create the subject on first sight, otherwise refresh name, rank and last_seen."""
        with self._lock:
            record = self._records.get(subject_id)
            if record is None:
                classification = self._classification.classify(subject_id)
                record = SubjectRecord(
                    subject_id=subject_id,
                    display_name=display_name or UNKNOWN,
                    affiliation=classification.affiliation,
                    rank=classification.rank,
                    first_seen=now,
                    last_seen=now,
                    callback_url=callback_url or "",
                )
                self._records[subject_id] = record
            else:
                assigned = self._classification.assignments([subject_id]).get(subject_id)
                refresh_record(record, display_name, now, callback_url, assigned)
            return dataclasses.replace(record)

    def touch(self, subject_id: str, now: int) -> SubjectRecord | None:
        """Refresh last_seen for a known subject; unknown subjects are ignored."""
        with self._lock:
            record = self._records.get(subject_id)
            if record is None:
                return None
            record.last_seen = now
            return dataclasses.replace(record)

    def get(self, subject_id: str) -> SubjectRecord | None:
        """Return a copy of one record."""
        with self._lock:
            record = self._records.get(subject_id)
            return dataclasses.replace(record) if record is not None else None

    def bulk_lookup(self, subject_ids: Any, now: int) -> list[LookupOutcome]:
        """Look up each id in input order, capped at the configured maximum."""
        targets = normalize_targets(subject_ids, self._scan_limit)
        assigned = self._classification.assignments({str(target) for target in targets})
        with self._lock:
            return [
                outcome_for(target, self._records.get(str(target)), now, assigned.get(str(target)))
                for target in targets
            ]

    def list_endpoints(self) -> list[tuple[str, str]]:
        """Return ``(subject_id, callback_url)`` for subjects with a callback URL."""
        with self._lock:
            return [
                (record.subject_id, record.callback_url)
                for record in self._records.values()
                if record.callback_url
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

