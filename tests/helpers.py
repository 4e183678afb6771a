# tests/helpers.py
"""Small utilities shared by the test modules."""

from __future__ import annotations

import hashlib

TEST_SECRET = "CHANGEME_SECRET"


def sign(body: str | bytes, secret: str = TEST_SECRET) -> str:
    """Reference signature computed independently of the service code."""
    data = body.encode("utf-8") if isinstance(body, str) else body
    return hashlib.sha1(secret.encode("utf-8") + b"|" + data).hexdigest()[:8]


class FakeClock:
    """Manually advanced clock for deterministic window tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
