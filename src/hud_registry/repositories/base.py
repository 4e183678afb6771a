"""Session handling shared by the SQL repositories."""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hud_registry.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionRepository:
    """Base for repositories that run their work inside one SQLAlchemy session.

    Storage failures are rolled back and surfaced as ``UpstreamUnavailable``.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def _run(self, action: str, operation: Callable[[], T]) -> T:
        try:
            return operation()
        except SQLAlchemyError as err:
            self.session.rollback()
            logger.error("%s failed: %s", action, err.__class__.__name__, exc_info=err)
            raise UpstreamUnavailable() from err
