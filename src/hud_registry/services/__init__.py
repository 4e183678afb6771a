# src/hud_registry/services/__init__.py
"""Request authentication, replay protection and registry services."""

from .gate import RequestGate, SignedRequest
from .rate_limit import FixedWindowRateLimiter
from .membership import InMemoryRoster, RosterClassification
from .registry import InMemoryRegistry, StaticClassification
from .replay import FreshnessGuard
from .signing import SignatureEngine

__all__ = [
    "FixedWindowRateLimiter",
    "FreshnessGuard",
    "InMemoryRegistry",
    "InMemoryRoster",
    "RequestGate",
    "RosterClassification",
    "SignatureEngine",
    "SignedRequest",
    "StaticClassification",
]
