# src/hud_registry/api/endpoints/__init__.py
"""API endpoint modules."""

from .club_v1 import router as club_v1_router
from .hud import router as hud_router
from .hud_v1 import router as hud_v1_router
from .system import router as system_router

__all__ = [
    "club_v1_router",
    "hud_router",
    "hud_v1_router",
    "system_router",
]
