# src/hud_registry/models/club.py
"""SQLAlchemy models for clubs and the ranks members hold in them."""

from __future__ import annotations

from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from hud_registry.db.session import Base


class Club(Base):
    """Club metadata; the name is reported as a member's affiliation."""

    __tablename__ = "club"

    club_id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    tag: Mapped[str] = mapped_column(Text, nullable=False)
    founder_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class ClubMember(Base):
    """Maps a subject to its single club and rank."""

    __tablename__ = "club_member"

    subject_id: Mapped[str] = mapped_column(Text, primary_key=True)
    club_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    rank: Mapped[str] = mapped_column(Text, nullable=False)
