"""Data access helpers for the persisted subject registry."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hud_registry.models.hud import HudRecord
from hud_registry.repositories.base import SessionRepository
from hud_registry.services.registry import (
    DEFAULT_SCAN_LIMIT,
    UNKNOWN,
    ClassificationPolicy,
    LookupOutcome,
    SubjectRecord,
    normalize_targets,
    outcome_for,
    refresh_record,
)

__all__ = ["SqlRegistryStore"]

logger = logging.getLogger(__name__)


def _to_record(row: HudRecord) -> SubjectRecord:
    return SubjectRecord(
        subject_id=row.subject_id,
        display_name=row.display_name,
        affiliation=row.affiliation,
        rank=row.rank,
        first_seen=int(row.first_seen),
        last_seen=int(row.last_seen),
        callback_url=row.callback_url or "",
    )


class SqlRegistryStore(SessionRepository):
    """Registry backed by a SQLAlchemy session."""

    def __init__(
        self,
        session: Session,
        classification: ClassificationPolicy,
        *,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ) -> None:
        super().__init__(session)
        self._classification = classification
        self._scan_limit = scan_limit

    def _locked_row(self, subject_id: str) -> HudRecord | None:
        stmt = select(HudRecord).where(HudRecord.subject_id == subject_id).with_for_update()
        return self.session.execute(stmt).scalars().first()

    def upsert(
        self,
        subject_id: str,
        display_name: str,
        now: int,
        *,
        callback_url: str | None = None,
    ) -> SubjectRecord:
        """Insert the subject on first sight, otherwise refresh name, rank and last_seen.

        A first registration that loses an insert race to another writer is
        applied as a repeat registration of the row that writer created.
        """

        def _upsert() -> SubjectRecord:
            row = self._locked_row(subject_id)
            if row is None:
                classification = self._classification.classify(subject_id)
                row = HudRecord(
                    subject_id=subject_id,
                    display_name=display_name or UNKNOWN,
                    affiliation=classification.affiliation,
                    rank=classification.rank,
                    callback_url=callback_url or "",
                    first_seen=now,
                    last_seen=now,
                )
                self.session.add(row)
                try:
                    self.session.commit()
                    return _to_record(row)
                except IntegrityError:
                    self.session.rollback()
                    logger.info("Concurrent first registration of %s; updating instead", subject_id)
                    row = self._locked_row(subject_id)
                    if row is None:
                        raise
            assigned = self._classification.assignments([subject_id]).get(subject_id)
            refresh_record(row, display_name, now, callback_url, assigned)
            self.session.commit()
            return _to_record(row)

        return self._run("Registry upsert", _upsert)

    def touch(self, subject_id: str, now: int) -> SubjectRecord | None:
        """Refresh last_seen for a known subject; unknown subjects are ignored."""

        def _touch() -> SubjectRecord | None:
            row = self._locked_row(subject_id)
            if row is None:
                self.session.rollback()
                return None
            row.last_seen = now
            self.session.commit()
            return _to_record(row)

        return self._run("Registry touch", _touch)

    def get(self, subject_id: str) -> SubjectRecord | None:
        """Return one record by subject identifier."""

        def _get() -> SubjectRecord | None:
            row = self.session.get(HudRecord, subject_id)
            return _to_record(row) if row is not None else None

        return self._run("Registry get", _get)

    def bulk_lookup(self, subject_ids: Any, now: int) -> list[LookupOutcome]:
        """Look up each id in input order with a single query."""
        targets = normalize_targets(subject_ids, self._scan_limit)
        if not targets:
            return []
        keys = {str(target) for target in targets}

        def _find_many() -> dict[str, SubjectRecord]:
            rows = self.session.execute(
                select(HudRecord).where(HudRecord.subject_id.in_(keys))
            ).scalars()
            return {row.subject_id: _to_record(row) for row in rows}

        found = self._run("Registry bulk lookup", _find_many)
        assigned = self._classification.assignments(found.keys())
        return [
            outcome_for(target, found.get(str(target)), now, assigned.get(str(target)))
            for target in targets
        ]

    def list_endpoints(self) -> list[tuple[str, str]]:
        """Return ``(subject_id, callback_url)`` for subjects with a callback URL."""

        def _list() -> list[tuple[str, str]]:
            rows = self.session.execute(
                select(HudRecord.subject_id, HudRecord.callback_url)
                .where(HudRecord.callback_url != "")
                .order_by(HudRecord.subject_id)
            )
            return [(subject_id, url) for subject_id, url in rows]

        return self._run("Registry listing", _list)
