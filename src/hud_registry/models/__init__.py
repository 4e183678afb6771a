# src/hud_registry/models/__init__.py
"""SQLAlchemy models for the persisted registry variant."""

from .club import Club, ClubMember
from .hud import HudRecord

__all__ = ["Club", "ClubMember", "HudRecord"]
