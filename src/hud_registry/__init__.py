"""Signed registration and lookup service for scripted HUD clients."""

__version__ = "1.0.0"
