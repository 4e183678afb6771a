# src/hud_registry/models/hud.py
"""SQLAlchemy model for registered HUD subjects."""

from __future__ import annotations

from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from hud_registry.db.session import Base


class HudRecord(Base):
    """One subject keyed by its external identifier.

    ``first_seen`` is written once on insert; ``last_seen`` moves on every
    registration and heartbeat. Times are whole seconds since the epoch.
    """

    __tablename__ = "hud_record"

    subject_id: Mapped[str] = mapped_column(Text, primary_key=True)
    display_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    affiliation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rank: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Callback address the HUD listens on; empty when never reported.
    callback_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    first_seen: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_seen: Mapped[int] = mapped_column(BigInteger, nullable=False)
