# src/hud_registry/api/__init__.py
"""HTTP API for the HUD registry."""

from .endpoints import club_v1_router, hud_router, hud_v1_router, system_router

__all__ = ["club_v1_router", "hud_router", "hud_v1_router", "system_router"]
